from litestar import get


@get("/", sync_to_thread=False)
def home() -> dict[str, str]:
    """Liveness check."""
    return {"message": "Snake & Ladder backend running"}


routes = [home]
