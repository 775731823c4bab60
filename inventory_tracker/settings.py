import logging
import os
from pathlib import Path
from dotenv import load_dotenv

# --- Base Directory ---
BASE_DIR = Path(__file__).resolve().parent.parent

# --- Load Environment Variables ---
load_dotenv(BASE_DIR / ".env")

# --- Path Configuration ---
DATA_DIR = BASE_DIR / os.getenv("DATA_DIR", "data")
OUTPUT_DIR = BASE_DIR / os.getenv("OUTPUT_DIR", "output")
LOG_DIR = BASE_DIR / os.getenv("LOG_DIR", "logs")

# --- Logging ---
LOG_LEVEL = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)

# --- Storage Keys ---
# One JSON file per collection, named after its key.
PRODUCTS_KEY = os.getenv("PRODUCTS_KEY", "gg_products")
PURCHASES_KEY = os.getenv("PURCHASES_KEY", "gg_purchases")
REPORTS_KEY = os.getenv("REPORTS_KEY", "gg_reports")

# --- Export ---
SAVE_JSON_OUTPUT = os.getenv("SAVE_JSON_OUTPUT", "false").lower() in ("1", "true", "yes")

# --- Webhook ---
WEBHOOK_URL = os.getenv("WEBHOOK_URL")

# --- Shared Business Logic ---
# Products strictly below this stock level are flagged as running low.
LOW_STOCK_THRESHOLD = int(os.getenv("LOW_STOCK_THRESHOLD", "10"))

# What to do with a physical count that is not a whole number:
#   "reject" -> raise a ValidationError naming the product
#   "coerce" -> treat it as 0 (before clamping)
INVALID_COUNT_POLICY = os.getenv("INVALID_COUNT_POLICY", "reject").lower()
COUNT_POLICIES = ("reject", "coerce")

# Column headers accepted in uploaded count/delivery sheets.
SHEET_COLUMN_ALIASES = {
    "Product ID": "product_id",
    "productId": "product_id",
    "product_id": "product_id",
    "id": "product_id",
    "Actual Stock": "actual",
    "actualStock": "actual",
    "actual": "actual",
    "Quantity": "quantity",
    "Quantity Added": "quantity",
    "quantity": "quantity",
}
