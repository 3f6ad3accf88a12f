"""
Voice Companion.

A voice interaction engine for a mental wellness companion: spoken input is
matched against ordered keyword rules and answered aloud, while a guide
narrates context help as the user navigates.
"""

__version__ = "0.1.0"
