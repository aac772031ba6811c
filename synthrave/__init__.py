"""synthrave: compile tracker-style timelines into rendered stereo audio.

The pipeline is split into a compiler (``synthrave.sequence``) that turns
text rows into a :class:`~synthrave.model.types.SequenceDocument`, and a
mixer (``synthrave.audio.mixer``) that renders the document through a
closed catalog of procedural voices.
"""
from __future__ import annotations

__version__ = "0.1.0"
