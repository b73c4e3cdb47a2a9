"""Small GTK application showing a reorderable list."""

from __future__ import annotations

import argparse
import logging
import sys

import gi
gi.require_version("Gtk", "4.0")
gi.require_version("Adw", "1")
from gi.repository import Adw, Gtk

from .gtk_binding import ListBoxReorder
from .serialize import serialize

logger = logging.getLogger(__name__)


DEMO_CSS = """
.tDnD_whileDrag { background-color: alpha(@accent_bg_color, 0.25); font-style: italic; }
.nodrag label { color: alpha(currentColor, 0.55); }
"""


class DemoApp(Adw.Application):
    def __init__(self, rows: int = 30):
        super().__init__(application_id="io.github.tablednd.demo")
        self.row_count = rows
        self.reorder = None
        self.connect("activate", self._on_activate)

    def _on_activate(self, app):
        window = Adw.ApplicationWindow(application=self)
        window.set_title("Table DnD Demo")
        window.set_default_size(360, 420)

        provider = Gtk.CssProvider()
        provider.load_from_data(DEMO_CSS.encode("utf-8"))
        Gtk.StyleContext.add_provider_for_display(
            window.get_display(), provider, Gtk.STYLE_PROVIDER_PRIORITY_APPLICATION
        )

        listbox = Gtk.ListBox()
        listbox.set_selection_mode(Gtk.SelectionMode.NONE)
        for index in range(1, self.row_count + 1):
            listbox.append(self._build_row(index))

        scrolled = Gtk.ScrolledWindow()
        scrolled.set_child(listbox)
        scrolled.set_vexpand(True)

        self.reorder = ListBoxReorder(
            listbox,
            scrolled,
            config={
                "on_drop": self._on_drop,
                "on_drag_start": lambda table, rows: logger.info("Dragging %d row(s)", len(rows)),
            },
            table_id="demo",
        )

        window.set_content(scrolled)
        window.present()

    def _build_row(self, index: int) -> Gtk.ListBoxRow:
        row = Gtk.ListBoxRow()
        row.set_name(f"row-{index}")
        title = f"Row {index}"
        if index == 1:
            row.add_css_class("nodrag")
            row.add_css_class("nodropbefore")
            title += " (pinned first)"
        elif index % 7 == 0:
            row.add_css_class("nodrop")
            title += " (no drop)"

        label = Gtk.Label(label=title)
        label.set_margin_start(12)
        label.set_margin_end(12)
        label.set_margin_top(6)
        label.set_margin_bottom(6)
        label.set_xalign(0.0)
        row.set_child(label)
        return row

    def _on_drop(self, table, rows):
        print(serialize(table, self.reorder.controller.config.serialize_pattern))


def setup_logging(verbose: bool = False) -> None:
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(console_handler)
    root_logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    logging.getLogger('gi').setLevel(logging.INFO if verbose else logging.WARNING)
    logging.getLogger('tablednd').setLevel(logging.DEBUG if verbose else logging.INFO)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Reorderable list demo")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose debug logging")
    parser.add_argument("--rows", type=int, default=30, help="Number of rows to show")
    args = parser.parse_args(argv)

    setup_logging(args.verbose)
    app = DemoApp(rows=max(1, args.rows))
    return app.run([sys.argv[0]])


if __name__ == "__main__":
    sys.exit(main())
