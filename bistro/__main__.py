"""
Run the API server: python -m bistro
"""

import uvicorn

from bistro.core.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "bistro.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.is_development,
        log_level="debug" if settings.debug else "info",
    )


if __name__ == "__main__":
    main()
