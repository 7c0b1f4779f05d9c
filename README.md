# orbslam

Extraction and matching of ORB features in Python, built on NumPy.

## What is in the package

- `orbslam.extractor.ORBExtractor`: builds a scale pyramid, finds FAST corners
  cell by cell, spreads them over each level with an oct-tree, and computes each
  keypoint's orientation and 256-bit rotated BRIEF descriptor. Calling the
  extractor returns `(keypoints, descriptors)`, with keypoint coordinates at
  level-0 resolution and descriptors as an `(n, 32)` `uint8` array. The
  per-level settings are available as `features_per_level`, `scale_factors`,
  `inv_scale_factors`, `level_sigma2` and `inv_level_sigma2`, and the last
  pyramid as `image_pyramid`. `compute_keypoints_old` offers the alternative
  fixed-grid selection that keeps the best corners per cell.
- `orbslam.keypoint.KeyPoint`: a dataclass keypoint record (`x`, `y`, `size`,
  `angle`, `response`, `octave`) with `scaled` and `shifted` returning moved
  copies. `retain_best` keeps the keypoints with the strongest responses.
- `orbslam.octree`: `ExtractorNode` and `distribute_oct_tree`, which pick the
  strongest keypoint from each cell of a quadtree so that features are spread
  evenly over a region.
- `orbslam.imageops`: `fast` (FAST-9 corner detection with optional non-maximum
  suppression), `resize_bilinear`, `pad_reflect101` and `gaussian_blur` on
  single-channel images.
- `orbslam.pattern`: the fixed 512-point sampling pattern (`orb_pattern`) and
  the circular patch table (`compute_umax`).
- `orbslam.descriptor`: `ic_angle`, `compute_orientation`,
  `compute_orb_descriptor` and `compute_descriptors`.
- `orbslam.distance`: `descriptor_distance`, the Hamming distance between two
  descriptors (NumPy arrays or bytes), and `nearest_two`, which returns the best
  and second-best distances among chosen rows.
- `orbslam.rotation`: `rotation_bin`, `compute_three_maxima` and
  `RotationHistogram`, the rotation-consistency check that drops matches whose
  orientation change falls outside the three dominant bins.
- `orbslam.initialization`: `features_in_area` and `search_for_initialization`,
  windowed matching between two frames with a nearest-neighbour ratio test and
  an optional rotation check.
- `orbslam.geometry`: `radius_by_viewing_cos`, `check_dist_epipolar_line`,
  `decompose_sim3` and `project` (pinhole projection, `None` for points behind
  the camera).

## Installation

```
pip install .
```

To install the test dependencies as well:

```
pip install ".[test]"
```

## Usage

```python
import numpy as np
from orbslam.extractor import ORBExtractor
from orbslam.distance import descriptor_distance

image = (np.random.default_rng(0).random((240, 320)) * 255).astype(np.uint8)

extractor = ORBExtractor(
    n_features=500, scale_factor=1.2, n_levels=8, ini_th_fast=20, min_th_fast=7
)
keypoints, descriptors = extractor(image, None)

print(len(keypoints), descriptors.shape)          # N, (N, 32)
print(descriptor_distance(descriptors[0], descriptors[1]))
```

The image must be a 2-D `uint8` array, which is a single grey channel. The mask
argument is optional and ignored. An empty image gives no keypoints and an empty
`(0, 32)` descriptor array.

## What it does not do

This package covers feature extraction and the matching helpers listed above.
It does not track a camera, build or store a map, close loops, run bundle
adjustment or pose optimisation, or match through a visual vocabulary. It has
no command-line tool and no viewer.

## Running the tests

```
pytest
```