from app.core.config import get_settings

settings = get_settings()

UPLOADS_PREFIX = "/uploads"


def get_full_image_url(image_url: str | None, base_url: str | None = None) -> str:
    """
    Turn an image path stored on a product into an absolute URL.

    Rules:
      - empty / missing        -> placeholder image
      - http(s):// or data:    -> returned unchanged
      - anything else          -> <backend>/uploads/<path>

    Example:
        "product-12.jpg"          -> "http://localhost:5000/uploads/product-12.jpg"
        "/uploads/product-12.jpg" -> "http://localhost:5000/uploads/product-12.jpg"
    """
    if not image_url:
        return settings.PLACEHOLDER_IMAGE_URL

    if image_url.startswith("http") or image_url.startswith("data:"):
        return image_url

    path = image_url if image_url.startswith("/") else f"/{image_url}"
    if not path.startswith(UPLOADS_PREFIX) and "/uploads/" not in path:
        path = f"{UPLOADS_PREFIX}{path}"

    base = (base_url or settings.BACKEND_API_URL).rstrip("/")
    return f"{base}{path}"
