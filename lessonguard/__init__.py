"""lessonguard: rule-based classroom discourse safety and Lei 13.185 compliance."""
