import logging

import uvicorn

from api.config import settings
from api.main import create_app

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

app = create_app()

if __name__ == "__main__":
    uvicorn.run("api.wsgi:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG)
