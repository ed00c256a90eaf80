"""lessonguard services."""
