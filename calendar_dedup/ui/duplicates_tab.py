"""Duplicate search, selection and deletion tab."""

from __future__ import annotations

import threading
import tkinter as tk
from tkinter import ttk, messagebox
from typing import Optional

from ..cleanup import DuplicateCleaner, SearchMode
from ..config import Config
from ..providers import create_provider
from ..providers.base import CalendarEvent
from .dialogs import BirthdayInfoDialog
from .theme import COLORS, FONTS


def format_when(event: CalendarEvent) -> str:
    if event.all_day:
        return event.start.strftime('%Y-%m-%d')
    return f"{event.start:%Y-%m-%d %H:%M} - {event.end:%Y-%m-%d %H:%M}"


def format_calendar(event: CalendarEvent) -> str:
    if event.calendar is None:
        return "Not Available"
    title = event.calendar.title or "Untitled"
    return f"{title} ({event.calendar.kind.label})"


def format_note(event: CalendarEvent) -> str:
    if event.is_protected:
        return "Cannot be deleted"
    if event.calendar is None:
        return "Warning: No associated calendar"
    return ""


class DuplicatesTab(ttk.Frame):
    """Tab for finding duplicates and deleting the selected ones."""

    COLUMNS = (('check', '✓', 40), ('title', 'Title', 240), ('when', 'When', 260),
               ('calendar', 'Calendar', 200), ('note', 'Note', 200))

    def __init__(self, parent, config: Config, sources_tab):
        super().__init__(parent)
        self.config = config
        self.sources_tab = sources_tab
        self._cleaner: Optional[DuplicateCleaner] = None
        self._cleaner_source = ''
        self._busy = False
        self._build_ui()
        self.refresh_sources()

    def _build_ui(self):
        # --- Settings ---
        settings = ttk.LabelFrame(self, text="Settings")
        settings.pack(fill='x', padx=16, pady=(16, 8))

        row1 = ttk.Frame(settings)
        row1.pack(fill='x', padx=12, pady=(8, 4))
        ttk.Label(row1, text="Source:", width=12, anchor='w').pack(side='left')
        self.source_var = tk.StringVar(value=self.config.get('active_source', ''))
        self.source_combo = ttk.Combobox(row1, textvariable=self.source_var, state='readonly', width=30)
        self.source_combo.pack(side='left')
        self.source_combo.bind('<<ComboboxSelected>>', lambda e: self._on_source_change())

        self.birthday_var = tk.BooleanVar(value=self.config.get('include_birthday_events', False))
        ttk.Checkbutton(row1, text="Include Birthday Events", variable=self.birthday_var,
                        command=self._on_birthday_toggle).pack(side='left', padx=(20, 0))

        row2 = ttk.Frame(settings)
        row2.pack(fill='x', padx=12, pady=(4, 8))
        ttk.Label(row2, text="Search Mode:", width=12, anchor='w').pack(side='left')
        self.mode_var = tk.StringVar(value=self.config.search_mode().value)
        for mode in SearchMode:
            ttk.Radiobutton(row2, text=mode.label, variable=self.mode_var,
                            value=mode.value).pack(side='left', padx=(0, 15))

        # --- Actions ---
        actions = ttk.Frame(self)
        actions.pack(fill='x', padx=16, pady=8)
        self.find_btn = ttk.Button(actions, text="🔍  Find Duplicates", style='Accent.TButton',
                                   command=self._find_duplicates)
        self.find_btn.pack(side='left', padx=(0, 10))
        self.select_btn = ttk.Button(actions, text="Select All", command=self._select_all)
        self.select_btn.pack(side='left', padx=(0, 10))
        self.delete_btn = ttk.Button(actions, text="🗑  Delete Selected", style='Danger.TButton',
                                     command=self._delete_selected, state='disabled')
        self.delete_btn.pack(side='left')

        self.progress = ttk.Progressbar(actions, mode='indeterminate', length=160)
        self.progress.pack(side='right')
        self.status_label = ttk.Label(actions, text="Ready.", style='Secondary.TLabel')
        self.status_label.pack(side='right', padx=10)

        # --- Lists ---
        regular = ttk.LabelFrame(self, text="Regular Events")
        regular.pack(fill='both', expand=True, padx=16, pady=(8, 8))
        self.regular_tree = self._make_tree(regular)

        self.birthday_frame = ttk.LabelFrame(self, text="Birthday Events")
        self.birthday_tree = self._make_tree(self.birthday_frame, height=5)
        tip = ttk.Frame(self.birthday_frame)
        tip.pack(fill='x', padx=8, pady=(0, 8))
        ttk.Label(tip, text="Tip: Duplicate birthday events may occur if a contact appears in multiple groups.",
                  style='Secondary.TLabel', font=FONTS['small']).pack(side='left')
        ttk.Button(tip, text="ⓘ Why are there duplicate birthday events?",
                   command=lambda: BirthdayInfoDialog(self.winfo_toplevel())).pack(side='right')
        self._update_birthday_section()

    def _make_tree(self, parent, height: int = 10) -> ttk.Treeview:
        frame = ttk.Frame(parent)
        frame.pack(fill='both', expand=True, padx=8, pady=8)
        tree = ttk.Treeview(frame, columns=[c[0] for c in self.COLUMNS], show='headings',
                            selectmode='none', height=height)
        for col, title, width in self.COLUMNS:
            tree.heading(col, text=title)
            tree.column(col, width=width, minwidth=30, stretch=(col != 'check'))
        tree.tag_configure('protected', foreground=COLORS['error'])
        tree.tag_configure('orphan', foreground=COLORS['warning'])
        scrollbar = ttk.Scrollbar(frame, orient='vertical', command=tree.yview)
        tree.configure(yscrollcommand=scrollbar.set)
        tree.pack(side='left', fill='both', expand=True)
        scrollbar.pack(side='right', fill='y')
        tree.bind('<ButtonRelease-1>', lambda e, t=tree: self._on_row_click(t, e))
        return tree

    # --- sources ---

    def refresh_sources(self):
        names = [s.get('name', 'Unnamed') for s in self.sources_tab.get_sources()]
        self.source_combo['values'] = names
        if self.source_var.get() not in names:
            self.source_var.set(names[0] if names else '')
            self._on_source_change()

    def _on_source_change(self):
        self.config.set('active_source', self.source_var.get())
        if self._cleaner_source != self.source_var.get():
            self._cleaner = None
            self._cleaner_source = ''
            self._render()

    def _on_birthday_toggle(self):
        self.config.set('include_birthday_events', self.birthday_var.get())
        self._update_birthday_section()

    def _update_birthday_section(self):
        if self.birthday_var.get():
            self.birthday_frame.pack(fill='both', expand=True, padx=16, pady=(0, 16))
        else:
            self.birthday_frame.pack_forget()

    # --- rendering ---

    def _render(self):
        for tree in (self.regular_tree, self.birthday_tree):
            tree.delete(*tree.get_children())
        cleaner = self._cleaner
        if cleaner is None:
            self.select_btn.configure(text="Select All")
            self.delete_btn.configure(state='disabled')
            return

        for ev in cleaner.candidates:
            tree = self.birthday_tree if ev.is_protected else self.regular_tree
            tags = ('protected',) if ev.is_protected else (('orphan',) if ev.calendar is None else ())
            tree.insert('', 'end', iid=ev.id, tags=tags, values=(
                '✓' if cleaner.is_selected(ev.id) else '',
                ev.display_title,
                format_when(ev),
                format_calendar(ev),
                format_note(ev),
            ))
        self.select_btn.configure(text="Deselect All" if cleaner.all_selected else "Select All")
        self.delete_btn.configure(state='normal' if cleaner.selected and not self._busy else 'disabled')

    def _on_row_click(self, tree: ttk.Treeview, event):
        row = tree.identify_row(event.y)
        if not row or self._cleaner is None or self._busy:
            return
        self._cleaner.toggle_selection(row)
        self._render()

    def _set_busy(self, busy: bool, status: str):
        self._busy = busy
        self.status_label.configure(text=status)
        if busy:
            self.progress.start(15)
            for btn in (self.find_btn, self.select_btn, self.delete_btn):
                btn.configure(state='disabled')
        else:
            self.progress.stop()
            self.find_btn.configure(state='normal')
            self.select_btn.configure(state='normal')
            self._render()

    # --- actions ---

    def _find_duplicates(self):
        name = self.source_var.get()
        src = self.config.get_source(name)
        if not src:
            messagebox.showwarning("No Source", "Add and select a calendar source first.")
            return

        mode = SearchMode(self.mode_var.get())
        include_birthdays = self.birthday_var.get()
        self.config.set('search_mode', mode.value)

        if self._cleaner is None or self._cleaner_source != name:
            try:
                provider = create_provider(src)
            except ValueError as e:
                messagebox.showerror("Error", str(e))
                return
            self._cleaner = DuplicateCleaner(
                provider,
                tz=self.config.timezone(),
                max_workers=self.config.get('delete_workers', 4),
                progress_callback=lambda msg: self.after(0, lambda m=msg: self.status_label.configure(text=m)),
            )
            self._cleaner_source = name

        cleaner = self._cleaner
        self._set_busy(True, "Searching...")

        def run():
            result = cleaner.find_duplicates(mode=mode, include_protected=include_birthdays)
            self.after(0, lambda: self._finish("Search", result.message()))

        threading.Thread(target=run, daemon=True).start()

    def _select_all(self):
        if self._cleaner is None:
            return
        self._cleaner.select_all()
        self._render()

    def _delete_selected(self):
        cleaner = self._cleaner
        if cleaner is None or not cleaner.selected:
            return
        count = len(cleaner.selected)
        if not messagebox.askyesno("Delete Selected", f"Delete {count} selected events?"):
            return

        self._set_busy(True, "Deleting...")

        def run():
            outcome = cleaner.delete_selected()
            self.after(0, lambda: self._finish("Delete", outcome.summary()))

        threading.Thread(target=run, daemon=True).start()

    def _finish(self, action: str, message: str):
        self._set_busy(False, f"{action} done.")
        messagebox.showinfo("Notice", message)
