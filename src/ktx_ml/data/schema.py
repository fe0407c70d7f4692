"""
Data schema definitions and constants.

Column names and label encoding for the expression matrix and the
rejection-status table.
"""

# ============================================================================
# Column Names
# ============================================================================

# Numeric sample identifier shared by both input tables
ID_COL = "sample_id"

# Binary rejection status in the label table
TARGET_COL = "rejection"

# ============================================================================
# Class Labels
# ============================================================================

NEGATIVE_LABEL = 0  # no rejection
POSITIVE_LABEL = 1  # rejection

VALID_LABELS = (NEGATIVE_LABEL, POSITIVE_LABEL)

# ============================================================================
# Split Labels
# ============================================================================

TRAIN_SPLIT = "train"
TEST_SPLIT = "test"
