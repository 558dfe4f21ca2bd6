"""
Application constants.

Centralized constants for the tree core.
"""

# ========================================================================
# API ENDPOINTS
# ========================================================================

BINARY_TREE_PATH = "/api/user/binary-tree"
ADMIN_SYSTEM_TREE_PATH = "/api/admin/binary-tree/system"
ADMIN_USER_TREE_PATH = "/api/admin/binary-tree/user/{user_id}"
ADMIN_SEARCH_TREE_PATH = "/api/admin/binary-tree/search"
CHILDREN_PATH = "/api/user/f1-members/{node_id}"
MEMBER_LIST_PATH = "/api/user/f1-members"
MEMBER_DETAIL_PATH = "/api/user/member-detail/{user_id}"
CREATE_TEMP_REFLINK_PATH = "/api/user/create-temp-reflink"

# Registration page receiving the referral code
REGISTER_PATH = "/register"
REF_QUERY_PARAM = "ref"

# ========================================================================
# TREE FETCH CONSTANTS
# ========================================================================

DEFAULT_MAX_DEPTH = 15  # Initial depth for the viewer's tree
MIN_MAX_DEPTH = 3  # Floor for halve-and-retry
DEPTH_STEP = 2  # Depth reduction per retry

# ========================================================================
# LAYOUT CONSTANTS
# ========================================================================

STANDARD_BASE_SPACING = 200
STANDARD_VERTICAL_SPACING = 200
COMPACT_BASE_SPACING = 140
COMPACT_VERTICAL_SPACING = 160
SPACING_DECAY = 0.8  # Horizontal offset ratio between consecutive levels
COMPACT_BREAKPOINT = 768  # Viewport width below which the compact layout is used

# ========================================================================
# INTERACTION TIMINGS (seconds)
# ========================================================================

SEARCH_DEBOUNCE_SECONDS = 1.2
COPY_ACK_SECONDS = 2.0
TOAST_DISMISS_SECONDS = 3.0
REQUEST_TIMEOUT_SECONDS = 30.0
