"""Vector maths, camera models, remapping, config files, logging, localisation and frame processing for tracking a rotating ball."""

__version__ = "2.1.2"