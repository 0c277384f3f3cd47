# product_service/main.py
from fastapi import FastAPI, HTTPException

app = FastAPI(title="Product Service (dev mock)")


PRODUCTS = {
    1: {"id": 1, "name": "Filtre a huile", "sku": "FH-01", "price": 1200.00, "category_id": "engine"},
    2: {"id": 2, "name": "Plaquettes de frein", "sku": "PF-02", "price": 3450.50, "category_id": "brakes"},
    3: {"id": 3, "name": "Batterie 70Ah", "sku": "BT-70", "price": 18900.00, "category_id": "electrical"},
    4: {"id": 4, "name": "Kit distribution", "sku": "KD-04", "price": None, "category_id": "engine"},
}


@app.get("/products/{product_id}")
def get_product(product_id: int):
    product = PRODUCTS.get(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return product
