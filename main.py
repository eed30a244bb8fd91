#!/usr/bin/env python3
"""Render a pitch-shifted WAV from the project root.

Usage:
    uv run python main.py input.wav output.wav --semitones 5
    uv run python main.py input.wav output.wav --preset presets/octave_up.json
"""

import sys

if __name__ == "__main__":
    from audio.render import main
    sys.exit(main())
