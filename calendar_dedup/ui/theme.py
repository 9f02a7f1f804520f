"""Dark theme and CORE SYSTEMS branding for tkinter."""

from __future__ import annotations

import sys
import tkinter as tk
from tkinter import ttk


# CORE SYSTEMS color palette
COLORS = {
    'bg': '#1a1a2e',
    'bg_secondary': '#16213e',
    'bg_tertiary': '#0f3460',
    'surface': '#1f2940',
    'surface_hover': '#283550',
    'accent': '#00ff88',
    'accent_dim': '#00cc6a',
    'accent_bg': '#003322',
    'text': '#e0e0e0',
    'text_secondary': '#a0a0b0',
    'text_dim': '#606080',
    'error': '#ff4444',
    'warning': '#ffaa00',
    'input_bg': '#0d1b2a',
    'tab_active': '#1f2940',
    'tab_inactive': '#0f1a2e',
}

if sys.platform == 'darwin':
    FONTS = {
        'title': ('SF Pro Display', 16, 'bold'),
        'heading': ('SF Pro Display', 13, 'bold'),
        'body': ('SF Pro Text', 11),
        'small': ('SF Pro Text', 10),
    }
else:
    FONTS = {
        'title': ('Segoe UI', 16, 'bold'),
        'heading': ('Segoe UI', 12, 'bold'),
        'body': ('Segoe UI', 10),
        'small': ('Segoe UI', 9),
    }


def apply_theme(root: tk.Tk) -> ttk.Style:
    """Apply CORE SYSTEMS dark theme to the root window."""
    root.configure(bg=COLORS['bg'])
    root.option_add('*Background', COLORS['bg'])
    root.option_add('*Foreground', COLORS['text'])
    root.option_add('*Font', FONTS['body'])

    style = ttk.Style()
    if 'clam' in style.theme_names():
        style.theme_use('clam')

    style.configure('.', background=COLORS['bg'], foreground=COLORS['text'],
                    font=FONTS['body'], borderwidth=0)
    style.configure('Surface.TFrame', background=COLORS['surface'])

    labels = {
        'Title.TLabel': {'font': FONTS['title'], 'foreground': COLORS['accent']},
        'Heading.TLabel': {'font': FONTS['heading']},
        'Secondary.TLabel': {'foreground': COLORS['text_secondary']},
        'Error.TLabel': {'foreground': COLORS['error']},
        'Warning.TLabel': {'foreground': COLORS['warning']},
        'Surface.TLabel': {'background': COLORS['surface']},
    }
    for name, opts in labels.items():
        style.configure(name, **opts)

    style.configure('TButton', background=COLORS['bg_tertiary'], padding=(12, 6),
                    borderwidth=1, relief='flat')
    style.map('TButton',
              background=[('active', COLORS['surface_hover']), ('disabled', COLORS['bg_secondary'])],
              foreground=[('active', COLORS['accent']), ('disabled', COLORS['text_dim'])])
    style.configure('Accent.TButton', background=COLORS['accent_bg'],
                    foreground=COLORS['accent'], font=FONTS['heading'])
    style.map('Accent.TButton', background=[('active', COLORS['accent_dim'])],
              foreground=[('active', COLORS['bg'])])
    style.configure('Danger.TButton', background='#3a1a1a', foreground=COLORS['error'])
    style.map('Danger.TButton', background=[('active', '#5a2a2a')])

    style.configure('TEntry', fieldbackground=COLORS['input_bg'],
                    insertcolor=COLORS['accent'], borderwidth=1, relief='solid')
    style.configure('TCombobox', fieldbackground=COLORS['input_bg'],
                    background=COLORS['bg_tertiary'], arrowcolor=COLORS['accent'])
    style.map('TCombobox', fieldbackground=[('readonly', COLORS['input_bg'])])

    style.configure('TNotebook', borderwidth=0)
    style.configure('TNotebook.Tab', background=COLORS['tab_inactive'],
                    foreground=COLORS['text_secondary'], padding=(16, 8))
    style.map('TNotebook.Tab',
              background=[('selected', COLORS['tab_active'])],
              foreground=[('selected', COLORS['accent'])])

    style.configure('Treeview', background=COLORS['surface'],
                    fieldbackground=COLORS['surface'], rowheight=28)
    style.configure('Treeview.Heading', background=COLORS['bg_tertiary'],
                    foreground=COLORS['accent'], font=FONTS['heading'])
    style.map('Treeview',
              background=[('selected', COLORS['accent_bg'])],
              foreground=[('selected', COLORS['accent'])])

    for toggle in ('TCheckbutton', 'TRadiobutton'):
        style.map(toggle, background=[('active', COLORS['bg'])],
                  foreground=[('active', COLORS['accent'])])

    style.configure('TProgressbar', background=COLORS['accent'],
                    troughcolor=COLORS['bg_secondary'])
    style.configure('TLabelframe', borderwidth=1, relief='solid')
    style.configure('TLabelframe.Label', foreground=COLORS['accent'], font=FONTS['heading'])

    return style


def branded_header(parent) -> ttk.Frame:
    """Create CORE SYSTEMS branded header."""
    frame = ttk.Frame(parent, style='Surface.TFrame')

    title = ttk.Label(frame, text="◆ CALENDAR DEDUP", style='Title.TLabel')
    title.configure(background=COLORS['surface'])
    title.pack(side='left', padx=16, pady=12)

    subtitle = ttk.Label(frame, text="CORE SYSTEMS", style='Secondary.TLabel')
    subtitle.configure(background=COLORS['surface'], font=FONTS['small'])
    subtitle.pack(side='right', padx=16, pady=12)

    return frame
