"""Internal constants shared across the library."""

BASE_URL = "https://marquesa.onrender.com/api"
USER_AGENT = "storefront-sync/1.0"

#: Sentinel category key meaning "every product".
ALL_CATEGORIES_KEY = "todos"

ALL_PRODUCTS_PATH = "/categoryProducts"
CATEGORY_PATH_PREFIX = "/categoria/"

FAVORITES_GUEST_KEY = "favorites_guest"
FAVORITES_USER_PREFIX = "favorites_user_"
GUEST_OWNER_ID = "guest"

PLACEHOLDER_IMAGE = "/placeholder-image.jpg"
UNNAMED_PRODUCT = "Unnamed product"
UNCATEGORIZED = "Uncategorized"

# Catalog categories known to the storefront (id -> display name).
DEFAULT_CATEGORIES: dict[str, str] = {
    "688175a69579a7cde1657aaa": "Arreglos con flores naturales",
    "688175d89579a7cde1657ac2": "Arreglos con flores secas",
    "688175fd9579a7cde1657aca": "Cuadros decorativos",
    "688176179579a7cde1657ace": "Giftboxes",
    "688175e79579a7cde1657ac6": "Tarjetas",
}
