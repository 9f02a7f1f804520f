"""Modal dialogs for Calendar Dedup."""

from __future__ import annotations

import tkinter as tk
from tkinter import ttk, filedialog, messagebox

from ..providers.base import CalendarKind
from .theme import COLORS, FONTS


class BaseDialog(tk.Toplevel):
    """Base dark-themed dialog."""

    def __init__(self, parent, title: str, width: int = 450, height: int = 350):
        super().__init__(parent)
        self.title(title)
        self.configure(bg=COLORS['bg'])
        self.geometry(f"{width}x{height}")
        self.resizable(False, False)
        self.transient(parent)
        self.grab_set()
        self.result = None

        # Center on parent
        self.update_idletasks()
        px = parent.winfo_rootx() + (parent.winfo_width() - width) // 2
        py = parent.winfo_rooty() + (parent.winfo_height() - height) // 2
        self.geometry(f"+{px}+{py}")

    def ok(self):
        self.grab_release()
        self.destroy()

    def cancel(self):
        self.result = None
        self.grab_release()
        self.destroy()


# Field layout per source type: (label, config key, options)
SOURCE_FIELDS = {
    'ics_file': (
        ("File Path:", "file_path", {'browse': ("ICS files", "*.ics")}),
    ),
    'google': (
        ("Credentials JSON:", "credentials_file", {'browse': ("JSON files", "*.json")}),
        ("Calendar IDs (comma):", "calendar_ids", {'many': True}),
    ),
    'caldav': (
        ("Server URL:", "url", {}),
        ("Username:", "username", {}),
        ("Password:", "password", {'show': "•"}),
        ("Calendars (comma):", "calendar_names", {'many': True}),
        ("Birthday calendars:", "birthday_calendars",
         {'many': True, 'default': "Birthdays, Contact Birthdays"}),
    ),
}

SOURCE_TYPES = (
    ('Local ICS File', 'ics_file'),
    ('Google Calendar', 'google'),
    ('CalDAV (Apple, Nextcloud, etc.)', 'caldav'),
)


def split_list(value: str) -> list[str]:
    return [part.strip() for part in value.split(',') if part.strip()]


class AddSourceDialog(BaseDialog):
    """Collects the type, name and connection settings of a new source.

    On success ``result`` holds a source dict ready for ``Config.add_source``.
    """

    def __init__(self, parent):
        super().__init__(parent, "Add Calendar Source", 520, 440)

        body = ttk.Frame(self)
        body.pack(fill='both', expand=True, padx=20, pady=20)

        ttk.Label(body, text="Source Type:", style='Heading.TLabel').pack(anchor='w', pady=(0, 5))
        self.source_type = tk.StringVar(value=SOURCE_TYPES[0][1])
        for text, value in SOURCE_TYPES:
            ttk.Radiobutton(body, text=text, variable=self.source_type, value=value,
                            command=self._rebuild_fields).pack(anchor='w', pady=2)

        ttk.Separator(body, orient='horizontal').pack(fill='x', pady=10)

        self.fields = ttk.Frame(body)
        self.fields.pack(fill='both', expand=True)

        buttons = ttk.Frame(body)
        buttons.pack(fill='x', pady=(10, 0))
        ttk.Button(buttons, text="Cancel", command=self.cancel).pack(side='right', padx=(5, 0))
        ttk.Button(buttons, text="Add", style='Accent.TButton', command=self._on_add).pack(side='right')

        self._entries: dict[str, ttk.Entry] = {}
        self._lists: set[str] = set()
        self._birthday_var = tk.BooleanVar(value=False)
        self._rebuild_fields()

    def _field(self, label: str, key: str, browse=None, show: str = "", default: str = "",
               many: bool = False):
        row = ttk.Frame(self.fields)
        row.pack(fill='x', pady=3)
        ttk.Label(row, text=label, width=20, anchor='w').pack(side='left')
        entry = ttk.Entry(row, show=show)
        entry.pack(side='left', fill='x', expand=True)
        entry.insert(0, default)

        if browse:
            def pick():
                path = filedialog.askopenfilename(filetypes=[browse, ("All files", "*.*")])
                if path:
                    entry.delete(0, 'end')
                    entry.insert(0, path)
            ttk.Button(row, text="Browse", command=pick).pack(side='left', padx=(5, 0))

        self._entries[key] = entry
        if many:
            self._lists.add(key)

    def _rebuild_fields(self):
        for child in self.fields.winfo_children():
            child.destroy()
        self._entries = {}
        self._lists = set()

        kind = self.source_type.get()
        self._field("Name:", "name")
        for label, key, options in SOURCE_FIELDS[kind]:
            self._field(label, key, **options)
        if kind == 'ics_file':
            ttk.Checkbutton(self.fields, text="This is a birthday calendar",
                            variable=self._birthday_var).pack(anchor='w', pady=3)

    def _on_add(self):
        name = self._entries['name'].get().strip()
        if not name:
            messagebox.showwarning("Missing Name", "Please enter a name for this source.")
            return

        config = {}
        for key, entry in self._entries.items():
            if key == 'name':
                continue
            value = entry.get().strip()
            config[key] = split_list(value) if key in self._lists else value

        kind = self.source_type.get()
        if kind == 'ics_file':
            config['kind'] = (CalendarKind.BIRTHDAY if self._birthday_var.get()
                              else CalendarKind.LOCAL).value

        self.result = {'type': kind, 'name': name, 'config': config}
        self.ok()


class BirthdayInfoDialog(BaseDialog):
    """Explains where duplicate birthday events come from."""

    CAUSES = (
        "1. Duplicate contacts",
        "2. The same contact appearing in multiple groups",
        "3. Multiple birthday fields in contact information",
    )
    STEPS = (
        "1. Open your contacts app or address book",
        "2. Check for duplicate contacts and merge or delete any extras",
        "3. Review the contact's group memberships and remove it from groups it does not need",
        "4. Edit contact information so there is only one correct birthday date",
        "5. Return to this app and search for duplicates again",
    )

    def __init__(self, parent):
        super().__init__(parent, "About Birthday Events", 560, 460)

        main = ttk.Frame(self)
        main.pack(fill='both', expand=True, padx=20, pady=20)

        ttk.Label(main, wraplength=500, justify='left',
                  text="Birthday events are created automatically from your contact "
                       "information. Duplicate birthday events may be caused by:").pack(anchor='w')
        for line in self.CAUSES:
            ttk.Label(main, text=line, font=FONTS['heading']).pack(anchor='w', pady=1)

        ttk.Label(main, text="Steps to resolve:", style='Heading.TLabel').pack(anchor='w', pady=(12, 4))
        for line in self.STEPS:
            ttk.Label(main, text=line, wraplength=500, justify='left').pack(anchor='w', pady=1)

        ttk.Label(main, style='Secondary.TLabel', wraplength=500, justify='left', font=FONTS['small'],
                  text="Birthday events cannot be deleted here. Changes to contacts may take "
                       "some time to show up in the calendar.").pack(anchor='w', pady=(12, 0))

        ttk.Button(main, text="Close", command=self.ok).pack(side='bottom', anchor='e')
