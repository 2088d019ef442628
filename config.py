"""
PocketCal Configuration Settings
"""
import os

# Application Settings
APP_NAME = "PocketCal"
VERSION = "1.0.0"

# Engine Settings
DISPLAY_PRECISION = 10        # decimal places kept on the display
ERROR_TEXT = "Error"

# Display Settings
WINDOW_WIDTH = 360
WINDOW_HEIGHT = 560
DISPLAY_FONT = ("Consolas", 32, "bold")   # LCD/segmented-style font
SECONDARY_FONT = ("Consolas", 14)
BUTTON_FONT = ("Segoe UI", 14)
LABEL_FONT = ("Segoe UI", 10)

# ── Neumorphic Palettes ────────────────────────────────────────────────────────

# LIGHT palette  – soft grey-blue background
NEU_LIGHT = {
    "bg":           "#DDE6ED",   # base surface
    "bg_dark":      "#C8D4DF",   # slightly darker variant (inset feel)
    "shadow_dark":  "#B2BFC8",
    "shadow_lite":  "#FFFFFF",
    "display_bg":   "#C8D4DF",
    "display_fg":   "#1A2332",   # LCD dark on light
    "btn_bg":       "#DDE6ED",
    "btn_fg":       "#2B3A4A",
    "operator_fg":  "#1E7A56",
    "equals_bg":    "#2E8B57",
    "equals_fg":    "#FFFFFF",
    "memory_fg":    "#2C5F8A",
    "accent":       "#2E8B57",
    "text":         "#2B3A4A",
    "subtext":      "#6E8090",
    "success":      "#2E8B57",
    "danger":       "#B03A2E",
    "info":         "#2C5F8A",
}

# DARK palette  – deep slate with green accents
NEU_DARK = {
    "bg":           "#1E2530",
    "bg_dark":      "#161C26",
    "shadow_dark":  "#10161E",
    "shadow_lite":  "#283040",
    "display_bg":   "#161C26",
    "display_fg":   "#9ADDB0",   # LCD green-on-dark
    "btn_bg":       "#1E2530",
    "btn_fg":       "#BDD0E0",
    "operator_fg":  "#4DB888",
    "equals_bg":    "#2D8A58",
    "equals_fg":    "#FFFFFF",
    "memory_fg":    "#5E8FC8",
    "accent":       "#4DB888",
    "text":         "#BDD0E0",
    "subtext":      "#4E6070",
    "success":      "#4DB888",
    "danger":       "#E55A4E",
    "info":         "#5E8FC8",
}


def get_theme(dark: bool) -> dict:
    """Return the active neumorphic colour palette."""
    return NEU_DARK if dark else NEU_LIGHT


# Keypad layout, top to bottom (button captions)
KEYPAD_ROWS = [
    ["MC", "MR", "MS", "M+", "M-"],
    ["AC", "⌫", "%", "√", "÷"],
    ["7", "8", "9", "×"],
    ["4", "5", "6", "−"],
    ["1", "2", "3", "+"],
    ["+/-", "0", ".", "="],
]

# Physical keyboard -> button caption. Keys are event.char values, or
# event.keysym values for keys without a printable character.
KEY_BINDINGS = {
    "0": "0", "1": "1", "2": "2", "3": "3", "4": "4",
    "5": "5", "6": "6", "7": "7", "8": "8", "9": "9",
    ".": ".",
    "+": "+",
    "-": "−",
    "*": "×", "x": "×", "X": "×",
    "/": "÷",
    "=": "=", "\r": "=", "\n": "=", "Return": "=", "Enter": "=", "KP_Enter": "=",
    "BackSpace": "⌫", "Backspace": "⌫",
    "Escape": "C",
    "%": "%",
    "r": "√", "R": "√",
    "n": "+/-", "N": "+/-",
}

# History Settings
MAX_HISTORY_ITEMS = 100

# Settings file for the desktop app (theme only)
SETTINGS_FILE = os.environ.get(
    "POCKETCAL_SETTINGS", os.path.join(os.path.expanduser("~"), ".pocketcal.json")
)

# Web Portal settings
WEB_HOST = os.environ.get("POCKETCAL_HOST", "127.0.0.1")
WEB_PORT = int(os.environ.get("POCKETCAL_PORT", 8888))
MAX_SESSIONS = int(os.environ.get("POCKETCAL_MAX_SESSIONS", 256))
START_WEB_PORTAL = os.environ.get("POCKETCAL_WEB", "0").lower() in ("1", "true", "yes")

# Logging
LOG_LEVEL = os.environ.get("POCKETCAL_LOG_LEVEL", "INFO")
LOG_JSON = os.environ.get("POCKETCAL_LOG_JSON", "0").lower() in ("1", "true", "yes")
