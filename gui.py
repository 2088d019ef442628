"""
GUI for PocketCal
Tkinter keypad and display driven by the calculator engine
"""
import json
import logging
import tkinter as tk

import config
from calculator import Calculator, EventKind, MemoryOp
from history_manager import HistoryManager
from input_surface import event_for_button, event_for_key

logger = logging.getLogger(__name__)


class PocketCalGUI:
    def __init__(self, root):
        self.root = root
        self.root.title(config.APP_NAME)
        self.root.geometry(f"{config.WINDOW_WIDTH}x{config.WINDOW_HEIGHT}")

        # Initialize components
        self.calculator = Calculator()
        self.history_manager = HistoryManager().attach(self.calculator)
        self.calculator.subscribe(self._on_memory_event)

        # ── Theme state (load before any widget is created) ───────────────
        settings = self._load_settings()
        self.dark_mode: bool = settings.get("dark_mode", False)
        self.T: dict = config.get_theme(self.dark_mode)
        self.root.configure(bg=self.T["bg"])

        self.history_overlay = None
        self.create_widgets()
        self.root.bind('<Key>', self.on_key_press)
        self.refresh_display()

    # ── Settings persistence ─────────────────────────────────────────────
    def _load_settings(self):
        try:
            with open(config.SETTINGS_FILE, "r") as f:
                return json.load(f)
        except FileNotFoundError:
            return {}
        except (OSError, ValueError) as e:
            logger.warning("ignoring unreadable settings file %s: %s", config.SETTINGS_FILE, e)
            return {}

    def _save_settings(self, data):
        existing = self._load_settings()
        existing.update(data)
        try:
            with open(config.SETTINGS_FILE, "w") as f:
                json.dump(existing, f, indent=2)
        except OSError as e:
            logger.warning("could not save settings: %s", e)

    # ── Theme helpers ──────────────────────────────────────────────────────────
    def apply_theme(self):
        """Refresh T, then destroy+rebuild all widgets."""
        self.T = config.get_theme(self.dark_mode)
        self.root.configure(bg=self.T["bg"])
        for w in self.root.winfo_children():
            w.destroy()
        self.history_overlay = None
        self.create_widgets()
        self.refresh_display()

    def _toggle_dark_mode(self):
        """Persist dark_mode setting and apply theme immediately."""
        self.dark_mode = not self.dark_mode
        self._save_settings({"dark_mode": self.dark_mode})
        self.apply_theme()

    def _button_kind(self, label):
        if label == "=":
            return "equals"
        if label in ("+", "−", "×", "÷"):
            return "operator"
        if label.startswith("M"):
            return "memory"
        return "normal"

    def _neu_btn(self, parent, text, command=None, kind="normal", **kw):
        """Create a neumorphic styled flat button."""
        T = self.T
        if kind == "equals":
            bg, fg, abg = T["equals_bg"], T["equals_fg"], T["success"]
        elif kind == "operator":
            bg, fg, abg = T["btn_bg"], T["operator_fg"], T["bg_dark"]
        elif kind == "memory":
            bg, fg, abg = T["bg_dark"], T["memory_fg"], T["shadow_dark"]
        else:
            bg, fg, abg = T["btn_bg"], T["btn_fg"], T["bg_dark"]
        return tk.Button(
            parent, text=text, command=command,
            font=kw.pop("font", config.BUTTON_FONT),
            bg=bg, fg=fg,
            activebackground=abg, activeforeground=fg,
            relief=tk.FLAT, bd=0, cursor="hand2",
            highlightthickness=1,
            highlightbackground=T["shadow_dark"],
            highlightcolor=T["shadow_lite"],
            **kw
        )

    # ── Inline toast ────────────────────────────────────────────────────
    def _show_toast(self, msg, kind="info", duration=1800):
        """Show an inline toast banner at the top of the window."""
        T = self.T
        bg = {"success": T["success"], "error": T["danger"]}.get(kind, T["info"])
        toast = tk.Frame(self.root, bg=bg)
        toast.place(relx=0.05, y=40, relwidth=0.9, height=32)
        toast.lift()
        tk.Label(toast, text=f"  {msg}", font=(config.LABEL_FONT[0], 9, "bold"),
                 bg=bg, fg="#FFFFFF", anchor="w").pack(side=tk.LEFT, fill=tk.X, expand=True)
        self.root.after(duration, lambda: toast.destroy() if toast.winfo_exists() else None)

    # ── Widgets ─────────────────────────────────────────────────────────
    def create_widgets(self):
        """Create main UI components"""
        T = self.T
        # Top bar
        top_frame = tk.Frame(self.root, bg=T["bg_dark"], height=36)
        top_frame.pack(fill=tk.X, padx=2, pady=2)
        tk.Label(top_frame, text=config.APP_NAME,
                 font=(config.BUTTON_FONT[0], 13, "bold"),
                 bg=T["bg_dark"], fg=T["accent"]).pack(side=tk.LEFT, padx=8)
        self.memory_indicator = tk.Label(top_frame, text="", font=config.LABEL_FONT,
                                         bg=T["bg_dark"], fg=T["memory_fg"])
        self.memory_indicator.pack(side=tk.LEFT, padx=4)
        for text, command in (("☾" if not self.dark_mode else "☀", self._toggle_dark_mode),
                              ("History", self.toggle_history)):
            tk.Button(top_frame, text=text, command=command,
                      font=config.LABEL_FONT, bg=T["bg_dark"], fg=T["text"],
                      relief=tk.FLAT, bd=0, cursor="hand2",
                      activebackground=T["shadow_dark"]).pack(side=tk.RIGHT, padx=4)

        # Display area: inset card with LCD-style font
        outer = tk.Frame(self.root, bg=T["shadow_dark"], bd=0)
        outer.pack(fill=tk.X, padx=6, pady=(4, 6))
        display_frame = tk.Frame(outer, bg=T["display_bg"], height=110)
        display_frame.pack(fill=tk.BOTH, expand=True, padx=1, pady=1)
        display_frame.pack_propagate(False)

        self.secondary_display = tk.Label(
            display_frame, text="", font=config.SECONDARY_FONT,
            bg=T["display_bg"], fg=T["subtext"], anchor=tk.E, padx=12
        )
        self.secondary_display.pack(side=tk.TOP, fill=tk.X, pady=(8, 0))
        self.display = tk.Label(
            display_frame, text="0", font=config.DISPLAY_FONT,
            bg=T["display_bg"], fg=T["display_fg"], anchor=tk.E, padx=12
        )
        self.display.pack(side=tk.BOTTOM, fill=tk.X, pady=(0, 8))

        # Keypad
        keypad = tk.Frame(self.root, bg=T["bg"])
        keypad.pack(fill=tk.BOTH, expand=True, padx=4, pady=4)
        self.clear_button = None
        for r, row in enumerate(config.KEYPAD_ROWS):
            keypad.rowconfigure(r, weight=1)
            row_frame = tk.Frame(keypad, bg=T["bg"])
            row_frame.grid(row=r, column=0, sticky="nsew")
            row_frame.rowconfigure(0, weight=1)
            keypad.columnconfigure(0, weight=1)
            for c, label in enumerate(row):
                row_frame.columnconfigure(c, weight=1, uniform=f"row{r}")
                font = config.LABEL_FONT if label.startswith("M") else config.BUTTON_FONT
                btn = self._neu_btn(row_frame, label, kind=self._button_kind(label), font=font,
                                    command=lambda lbl=label: self.calculator_button_click(lbl))
                btn.grid(row=0, column=c, sticky="nsew", padx=2, pady=2)
                if label in ("AC", "C"):
                    self.clear_button = btn

    # ── Event handling ──────────────────────────────────────────────────
    def calculator_button_click(self, button):
        """Handle calculator button clicks"""
        event = event_for_button(button)
        if event is None:
            logger.debug("no event bound to button %r", button)
            return
        self.calculator.dispatch(event)
        self.refresh_display()

    def on_key_press(self, event):
        """Handle keyboard input"""
        calc_event = event_for_key(event.char, event.keysym)
        if calc_event is None:
            return
        self.calculator.dispatch(calc_event)
        self.refresh_display()

    def _on_memory_event(self, old, new, event):
        """Toast feedback for memory keys"""
        if event.kind is not EventKind.MEMORY or event.value is MemoryOp.RECALL:
            return
        messages = {
            MemoryOp.CLEAR: "Memory cleared",
            MemoryOp.STORE: f"Stored {new.current_input}",
            MemoryOp.ADD: f"Added {old.current_input} to memory",
            MemoryOp.SUBTRACT: f"Subtracted {old.current_input} from memory",
        }
        self.root.after_idle(lambda: self._show_toast(messages[event.value]))

    def refresh_display(self):
        """Render the engine's display projection"""
        view = self.calculator.display
        T = self.T
        self.display.config(text=view.display_text,
                            fg=T["danger"] if view.is_error else T["display_fg"])
        self.secondary_display.config(text=view.secondary_text)
        if self.clear_button is not None:
            self.clear_button.config(text=view.clear_label)
        memory = self.calculator.memory_value
        self.memory_indicator.config(text="M" if memory else "")
        if self.history_overlay is not None:
            self._fill_history()

    # ── History panel ───────────────────────────────────────────────────
    def toggle_history(self):
        if self.history_overlay is not None:
            self.history_overlay.destroy()
            self.history_overlay = None
            return
        T = self.T
        ov = tk.Frame(self.root, bg=T["bg_dark"])
        ov.place(relx=0.0, y=40, relwidth=1.0, relheight=0.5)
        ov.lift()
        header = tk.Frame(ov, bg=T["bg_dark"])
        header.pack(fill=tk.X)
        tk.Label(header, text="History", font=(config.LABEL_FONT[0], 11, "bold"),
                 bg=T["bg_dark"], fg=T["accent"]).pack(side=tk.LEFT, padx=8, pady=4)
        tk.Button(header, text="Clear", font=config.LABEL_FONT,
                  bg=T["bg_dark"], fg=T["danger"], relief=tk.FLAT, bd=0,
                  command=self._clear_history).pack(side=tk.RIGHT, padx=8)
        self._history_list = tk.Listbox(ov, bg=T["display_bg"], fg=T["display_fg"],
                                        font=config.SECONDARY_FONT, bd=0,
                                        highlightthickness=0)
        self._history_list.pack(fill=tk.BOTH, expand=True, padx=6, pady=(0, 6))
        self.history_overlay = ov
        self._fill_history()

    def _fill_history(self):
        self._history_list.delete(0, tk.END)
        for expr, result, _ in self.history_manager.get_calculation_history():
            self._history_list.insert(tk.END, f"{expr} = {result}")

    def _clear_history(self):
        self.history_manager.clear_calculation_history()
        self._fill_history()
