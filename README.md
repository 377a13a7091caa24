# trackball

Components for tracking the rotation of a ball seen by a camera: vector
maths, camera models, image remapping, configuration files, logging set-up,
sphere-map localisation and threaded frame preprocessing.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Modules

- `trackball.cmpoint`: `CmPoint`, a mutable 3D vector (`x`, `y`, `z`) with
  arithmetic, `dot`, `cross`, `normalise`/`normalised`, conversion between
  angle-axis vectors and 3x3 rotation matrices (`omega_to_matrix`,
  `CmPoint.matrix_to_omega`), azimuth/elevation (`CmPoint.from_az_el`,
  `to_az_el_mag`) and rotation helpers (`rotation_about`, `rotation_to`,
  `rotated_about_norm`, `orth_vec_norm`, `rotated_about_orth_vec`). The
  module also has `angle_axis_to_matrix`, `mat_mul`, `quat_normalise`,
  `matrix_to_quat` and `quat_to_angle_axis` (quaternions ordered x, y, z, w).
- `trackball.config`: `ConfigParser` reads and writes `key : value` files.
  Lines starting with `#` or `%` are kept as comments; lines starting with
  `##` and lines shorter than three characters are skipped. Values are read
  with `get` (raw string with a default), `get_str`, `get_int`, `get_float`,
  `get_bool` (`Y`/`y`/`1` or `N`/`n`/`0`), `get_int_list`, `get_float_list`
  (braced lists such as `{ 1, 2, 3 }`) and `get_int_lists` (lists of lists
  such as `{ { 1, 2 }, { 3, 4 } }`); each returns `None` when the key is
  absent. `add` stores numbers, booleans, strings and nested sequences.
  `write` writes a header line, the pairs sorted by key and then the
  comments, and returns the number of bytes written. Unreadable files,
  unwritable files and values that cannot be parsed raise `ConfigError`.
- `trackball.camera`: the abstract `CameraModel` and two models,
  `FisheyeCameraModel` (equidistant fisheye with a circular image region)
  and `EquiAreaCameraModel` (equal-area sphere map), built with
  `create_fisheye` and `create_equiarea`. `pixel_to_vector` returns a `Ray`
  (`direction`, `valid`); `vector_to_pixel` returns a `PixelPoint`
  (`x`, `y`, `valid`). The `*_index` variants work in pixel-index
  coordinates (offset by half a pixel).
- `trackball.remap`: `CameraRemap` builds lookup tables from a destination
  camera model into a source model, optionally through a transform object
  with an `inverse_transform` method. `apply` resamples an image bilinearly
  and fills destination pixels with no source pixel with `fill`.
- `trackball.recorder`: `FileRecorder` opens a text file (truncating it),
  flushes after every `write`, and closes on leaving a `with` block.
- `trackball.log`: `LogLevel` (`DBG`, `INF`, `WRN`, `ERR`, `PRT`),
  `parse_verbosity` (names such as `debug`, `INF`, `wrn`; unknown names
  fall back to `INF`), `set_verbosity` for console output and
  `configure_logging`, which also logs everything except `PRT` messages to
  a new `trackball-YYYYmmdd_HHMMSS.log` file and returns its path.
- `trackball.localiser`: `Localiser` searches, within `bound` of a guess,
  for the rotation that minimises the mean squared difference between the
  current ROI image and the sphere map, using `scipy.optimize`
  (`Nelder-Mead` by default, `Powell`, `differential_evolution` or another
  `minimize` method). `search` returns the best rotation and its error.
- `trackball.framegrabber`: `FrameGrabber` pulls frames from a source on a
  worker thread, extracts a grey image (`ThresholdChannel`: grey, red,
  green or blue), remaps it, applies a 3x3 median blur and an adaptive
  local min/max threshold, and queues `FrameSet` results. Collect them with
  `get_frame_set` (optionally only the latest); stop with `terminate` or
  `close`, or use it as a context manager. The helper functions
  `threshold_channel`, `extract_grey`, `median_blur3`, `window_min_max`
  and `adaptive_threshold` are usable on their own.

A frame source for `FrameGrabber` is any object with a `grab()` method
returning a BGR array (or `None` when there are no more frames), a
`rewind()` method, and `timestamp` and `ms_since_midnight` attributes. A
`CameraRemap` serves as its remapper.

## Example

```python
from trackball.config import ConfigParser
from trackball.cmpoint import CmPoint

cfg = ConfigParser("config.txt")
vfov = cfg.get_float("vfov")
roi_c = CmPoint(*cfg.get_float_list("roi_c"))

cfg.add("roi_r", 0.25)
cfg.write("config.txt")
```

```python
import math
from trackball.camera import create_fisheye

model = create_fisheye(640, 480, math.radians(60) / 480, 2 * math.pi)
x, y, valid = model.vector_to_pixel((0.0, 0.0, 1.0))
```

## What the package does not do

- It has no command-line program and no tracking loop that ties the parts
  together; you assemble them yourself.
- It does not capture frames from cameras or video files; you supply the
  frame source.
- It has no interactive screen for configuring the ball region, ignore
  regions or the camera-to-animal transform; config values are read and
  written through `ConfigParser`.
- It offers only the fisheye and equal-area camera models.