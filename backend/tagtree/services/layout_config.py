"""Static layout constants (pixels) for the left-to-right tag tree."""

from __future__ import annotations

CARD_W = 340
CARD_H = 170
TAG_H = 46
TAG_ROW_H = 34  # extra height per wrapped row of tag chips
LEVEL_STEP = 400  # x distance between depths
SIBLING_GAP = 80  # between sibling subtrees
CARD_GAP = 40  # between rows inside a multi-column group
COL_GAP = 40  # between columns inside a multi-column group
CLEARANCE = 40  # routing line to top of the first card row
ROUTE_INSET = 30  # over-route drop point, left of the card
MAX_ROWS = 2  # cards per column in a multi-column group

MAX_NEW_TAGS = 4  # tag chips shown on a leaf card

DEFAULT_MAX_DEPTH = 3
ORPHAN_MAX_DEPTH = 2
MAX_DEPTH_LIMIT = 6
