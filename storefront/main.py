# storefront/main.py
import uvicorn

from storefront.api import create_app
from storefront.utils.settings import REMOTE_URL
from storefront.utils.logging import get_logger

logger = get_logger(__name__)

app = create_app()
logger.info(f"Storefront API ready, backend at {REMOTE_URL}")

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
