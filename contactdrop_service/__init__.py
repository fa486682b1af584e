"""ContactDrop: collect contacts for time-limited sessions and export them as vCards."""

__version__ = "0.1.0"
