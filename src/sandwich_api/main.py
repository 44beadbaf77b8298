from __future__ import annotations

import uvicorn

from sandwich_api.config import load_settings


def main() -> None:
    settings = load_settings()
    uvicorn.run(
        "sandwich_api.bootstrap:create_asgi_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        reload=False,
        log_config=None,
    )


if __name__ == "__main__":
    main()
