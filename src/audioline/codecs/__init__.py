"""Decode capabilities for compressed containers."""

from audioline.codecs.pydub_decoder import PydubDecoder

__all__ = ["PydubDecoder"]
