"""Sources management tab."""

from __future__ import annotations

import threading
from tkinter import ttk, messagebox
from typing import Callable, Optional

from ..config import Config
from ..errors import CalendarError
from ..providers import create_provider
from .dialogs import AddSourceDialog

TYPE_LABELS = {
    'ics_file': '📄 ICS File',
    'google': '🔵 Google',
    'caldav': '🟢 CalDAV',
}

COLUMNS = (
    ('name', 'Name', 180),
    ('type', 'Type', 120),
    ('details', 'Details', 320),
    ('status', 'Status', 160),
)


def describe_source(src: dict) -> str:
    """One-line summary of where a source reads its events from."""
    cfg = src.get('config', {})
    kind = src.get('type', '')
    if kind == 'ics_file':
        files = cfg.get('calendars') or [cfg]
        return ', '.join(f"{c.get('file_path', '')} ({c.get('kind', 'local')})" for c in files)
    if kind == 'google':
        return ', '.join(cfg.get('calendar_ids', [])) or 'All calendars'
    if kind == 'caldav':
        return cfg.get('url', '')
    return ''


class SourcesTab(ttk.Frame):
    """Lists configured calendar sources and lets the user add, remove and test them."""

    def __init__(self, parent, config: Config, on_change: Optional[Callable[[], None]] = None):
        super().__init__(parent)
        self.config = config
        self.on_change = on_change or (lambda: None)
        self._build_ui()
        self._refresh_list()

    def _build_ui(self):
        bar = ttk.Frame(self)
        bar.pack(fill='x', padx=16, pady=(16, 8))
        ttk.Label(bar, text="Calendar Sources", style='Heading.TLabel').pack(side='left')

        actions = (
            ("Test Connection", None, self._test_connection),
            ("Remove", 'Danger.TButton', self._remove_source),
            ("+ Add Source", 'Accent.TButton', self._add_source),
        )
        for text, style, command in actions:
            kwargs = {'style': style} if style else {}
            ttk.Button(bar, text=text, command=command, **kwargs).pack(side='right', padx=(5, 0))

        body = ttk.Frame(self)
        body.pack(fill='both', expand=True, padx=16, pady=8)

        self.tree = ttk.Treeview(body, columns=[c[0] for c in COLUMNS],
                                 show='headings', selectmode='browse')
        for key, title, width in COLUMNS:
            self.tree.heading(key, text=title)
            self.tree.column(key, width=width, minwidth=80)

        yscroll = ttk.Scrollbar(body, orient='vertical', command=self.tree.yview)
        self.tree.configure(yscrollcommand=yscroll.set)
        self.tree.pack(side='left', fill='both', expand=True)
        yscroll.pack(side='right', fill='y')

    def _refresh_list(self):
        self.tree.delete(*self.tree.get_children())
        for src in self.get_sources():
            kind = src.get('type', '')
            self.tree.insert('', 'end', values=(
                src.get('name', 'Unnamed'),
                TYPE_LABELS.get(kind, kind),
                describe_source(src),
                '—',
            ))

    def _selected(self, action: str):
        """Return (row id, index, source) for the highlighted row, or None."""
        rows = self.tree.selection()
        if not rows:
            messagebox.showinfo("No Selection", f"Select a source to {action}.")
            return None
        index = self.tree.index(rows[0])
        sources = self.get_sources()
        if index >= len(sources):
            return None
        return rows[0], index, sources[index]

    def _add_source(self):
        dlg = AddSourceDialog(self.winfo_toplevel())
        self.wait_window(dlg)
        if not dlg.result:
            return
        name = dlg.result['name']
        if self.config.get_source(name):
            messagebox.showwarning("Duplicate Name", f"A source named '{name}' already exists.")
            return
        self.config.add_source(dlg.result)
        self._refresh_list()
        self.on_change()

    def _remove_source(self):
        picked = self._selected("remove")
        if not picked:
            return
        _, index, src = picked
        if messagebox.askyesno("Remove Source", f"Remove '{src.get('name', 'Unnamed')}'?"):
            self.config.remove_source(index)
            self._refresh_list()
            self.on_change()

    def _test_connection(self):
        picked = self._selected("test")
        if not picked:
            return
        row, _, src = picked
        self.tree.set(row, 'status', '… Testing')
        threading.Thread(target=self._probe, args=(row, src), daemon=True).start()

    def _probe(self, row: str, src: dict):
        """Runs on a worker thread; results are handed back via after()."""
        try:
            provider = create_provider(src)
        except ValueError as e:
            self.after(0, self._show_probe, row, src, None, str(e))
            return

        access = provider.request_access()
        if not access:
            self.after(0, self._show_probe, row, src, None, access.error or "Access denied")
            return
        try:
            calendars = provider.list_calendars(include_birthday=True)
        except CalendarError as e:
            self.after(0, self._show_probe, row, src, None, str(e))
            return
        finally:
            provider.disconnect()
        self.after(0, self._show_probe, row, src, calendars, None)

    def _show_probe(self, row: str, src: dict, calendars, error: Optional[str]):
        if not self.tree.exists(row):
            return
        if error:
            self.tree.set(row, 'status', '❌ Failed')
            messagebox.showerror("Connection Failed", f"Could not connect to '{src['name']}':\n{error}")
            return

        birthdays = sum(1 for c in calendars if c.is_birthday)
        self.tree.set(row, 'status', f'✅ {len(calendars)} calendars')
        listing = '\n'.join(f"  • {c.title} ({c.kind.label})" for c in calendars)
        messagebox.showinfo(
            "Connected",
            f"Connected to '{src['name']}'.\n"
            f"Found {len(calendars)} calendars ({birthdays} birthday):\n{listing}",
        )

    def get_sources(self) -> list[dict]:
        """Return configured sources for the duplicates tab."""
        return self.config.get('sources', [])
