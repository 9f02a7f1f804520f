"""Main application — Calendar Dedup by CORE SYSTEMS."""

from __future__ import annotations

import sys
import tkinter as tk
from tkinter import ttk, messagebox

from . import __version__
from .config import Config
from .ui.dialogs import BirthdayInfoDialog
from .ui.duplicates_tab import DuplicatesTab
from .ui.sources_tab import SourcesTab
from .ui.theme import apply_theme, branded_header, COLORS, FONTS


class CalendarDedupApp(tk.Tk):
    """Main application window."""

    def __init__(self, config: Config):
        super().__init__()

        self.title("Duplicate Events — CORE SYSTEMS")
        self.config_mgr = config
        self.geometry(self.config_mgr.get('window_geometry', '1000x700'))
        self.minsize(860, 560)

        apply_theme(self)
        self._build_ui()

        self.protocol('WM_DELETE_WINDOW', self._on_close)

    def _build_ui(self):
        branded_header(self).pack(fill='x')
        self._build_menu()

        self.notebook = ttk.Notebook(self)
        self.notebook.pack(fill='both', expand=True, padx=8, pady=(0, 8))

        # Sources tab is built first; the duplicates tab reads its source list
        self.sources_tab = SourcesTab(self.notebook, self.config_mgr,
                                      on_change=lambda: self.duplicates_tab.refresh_sources())
        self.duplicates_tab = DuplicatesTab(self.notebook, self.config_mgr, self.sources_tab)
        self.notebook.add(self.duplicates_tab, text="  🗂 Duplicates  ")
        self.notebook.add(self.sources_tab, text="  📂 Sources  ")

        status_bar = ttk.Frame(self, style='Surface.TFrame')
        status_bar.pack(fill='x', side='bottom')
        ttk.Label(status_bar, text=f"v{__version__}", style='Surface.TLabel', font=FONTS['small'],
                  foreground=COLORS['text_dim']).pack(side='right', padx=12, pady=4)

    def _build_menu(self):
        colors = dict(bg=COLORS['bg_secondary'], fg=COLORS['text'],
                      activebackground=COLORS['accent_bg'], activeforeground=COLORS['accent'])
        menubar = tk.Menu(self, borderwidth=0, **colors)

        file_menu = tk.Menu(menubar, tearoff=0, **colors)
        file_menu.add_command(label="Quit", command=self._on_close,
                              accelerator="Cmd+Q" if sys.platform == 'darwin' else "Ctrl+Q")
        menubar.add_cascade(label="File", menu=file_menu)

        help_menu = tk.Menu(menubar, tearoff=0, **colors)
        help_menu.add_command(label="About Birthday Events", command=lambda: BirthdayInfoDialog(self))
        help_menu.add_command(label="About", command=self._show_about)
        menubar.add_cascade(label="Help", menu=help_menu)

        self.configure(menu=menubar)

        key = 'Command' if sys.platform == 'darwin' else 'Control'
        self.bind(f'<{key}-q>', lambda e: self._on_close())

    def _show_about(self):
        messagebox.showinfo(
            "About Calendar Dedup",
            f"Calendar Dedup v{__version__}\n\n"
            "Find and remove duplicate calendar events.\n\n"
            "Google Calendar • CalDAV • ICS Files\n\n"
            "© CORE SYSTEMS"
        )

    def _on_close(self):
        self.config_mgr.set('window_geometry', self.geometry())
        self.destroy()
