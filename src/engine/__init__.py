"""
Animation engine: frames, load scheduling, presentation and playback.
"""
