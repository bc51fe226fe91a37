import uvicorn

from .core.config import settings
from .core.logging import configure_logging


def main():
    configure_logging()
    uvicorn.run(
        "dataset_insight_api.main:app",
        host=settings.BIND_ADDR,
        port=settings.BIND_PORT,
    )

if __name__ == "__main__":
    main()
