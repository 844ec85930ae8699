"""Script generation pipeline: transcripts, pattern analysis and script generation."""
