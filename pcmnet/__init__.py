"""PCM sample conversion, dithering, MIDI packing and fragmented network audio packets."""

__version__ = "0.1.0"