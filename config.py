"""Central configuration for barcode frame preprocessing and scanning.

All tunable parameters are defined here with descriptive names.
These values can be adjusted to fine-tune decode rates on difficult captures.
"""

# =============================================================================
# MEDIAN BLUR
# =============================================================================

# Neighborhood radius; the window is (2r+1) x (2r+1)
MEDIAN_RADIUS = 1

# =============================================================================
# ADAPTIVE THRESHOLD
# =============================================================================

# Side length of the local mean window (odd values keep it centered)
ADAPTIVE_WINDOW_SIZE = 15

# Offset subtracted from the local mean; a pixel is black if v < mean - C
ADAPTIVE_C = 7

# =============================================================================
# CLAHE (contrast enhancement pre-pass)
# =============================================================================

# Nominal tile side in pixels (tile count is floor(dimension / tile size))
CLAHE_TILE_SIZE = 8

# Maximum count allowed in any histogram bucket before clipping
CLAHE_CLIP_LIMIT = 40

# =============================================================================
# UNSHARP MASK (sharpening pre-pass)
# =============================================================================

# Box blur radius used to estimate the low-frequency image
UNSHARP_RADIUS = 1

# Gain applied to the (original - blurred) residual
UNSHARP_AMOUNT = 1.0

# =============================================================================
# REGION OF INTEREST
# =============================================================================

# Centre band used when cropping a capture before preprocessing.
# Barcodes are usually held horizontally across the middle of the frame,
# so the band is wide and short.
ROI_X_FRACTION = 0.15
ROI_Y_FRACTION = 0.35
ROI_WIDTH_FRACTION = 0.7
ROI_HEIGHT_FRACTION = 0.3

# =============================================================================
# DECODING
# =============================================================================

# Decoder engine: "pyzbar", "opencv" or "hybrid"
DECODER_ENGINE = "hybrid"

# Engine order used by the hybrid decoder (primary first)
HYBRID_ENGINES = ("pyzbar", "opencv")

# =============================================================================
# DEBUG ARTIFACTS
# =============================================================================

# File extension for intermediate images written by the pipeline.
# PNG is lossless, so saved thresholded frames stay strictly binary.
ARTIFACT_EXTENSION = ".png"
