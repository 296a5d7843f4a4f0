
# Remote tables (one Mongo collection each)
TABLE_WISHLISTS = "wishlists"
TABLE_BROWSING_HISTORY = "browsing_history"
TABLE_PRODUCTS = "products"
TABLE_SESSIONS = "sessions"

# Compare panel capacity
COMPARE_MAX_ITEMS = 3

# Browsing history read defaults
HISTORY_DEFAULT_LIMIT = 10

# Recommendations
RECOMMENDATION_LIMIT = 4
RECOMMENDATION_POOL_SIZE = 20

# History cache views (hash fields under hist:<user_id>)
VIEW_RECENT = "recent"
VIEW_MOST = "most"
VIEW_CATEGORIES = "categories"

# User-facing notices
NOTICE_SIGN_IN_WISHLIST = "Please sign in to add items to your wishlist"
NOTICE_WISHLIST_ADDED = "Added to wishlist"
NOTICE_WISHLIST_REMOVED = "Removed from wishlist"
NOTICE_WISHLIST_FAILED = "Failed to update wishlist"
NOTICE_COMPARE_FULL = "You can compare up to {max} products at a time. Remove one to add another."
NOTICE_COMPARE_DUPLICATE = "{name} is already in your comparison list."
NOTICE_COMPARE_ADDED = "{name} added to comparison."
