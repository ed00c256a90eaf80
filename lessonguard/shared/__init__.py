"""Code shared across lessonguard services."""
