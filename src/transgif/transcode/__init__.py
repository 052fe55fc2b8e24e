"""Transcode package: FFmpeg stage pipeline from stills to GIF."""
