"""App Kivy: carga de lecturas, tabla paginada, configuracion y acerca de."""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path

from glucose_log.errors import InvalidGlucose, StorageError
from glucose_log.model import Reading
from glucose_log.settings import (
    COLOUR_SCHEMES,
    FONT_SIZES,
    PAGE_SIZE_CHOICES,
    SETTINGS_FILENAME,
    SettingsStore,
    default_data_dir,
)
from glucose_log.sorting import SortDirection, SortKey
from glucose_log.storage import READINGS_FILENAME, ReadingStore
from glucose_log.viewstate import EntryForm, ReadingsView

logger = logging.getLogger(__name__)

APP_TITLE = "Blood Glucose Tracker"
APP_VERSION = "1.0.0"

FONT_SIZE_SP: dict[str, int] = {"small": 13, "medium": 15, "large": 18}
CLEAR_COLOURS: dict[str, tuple[float, float, float, float]] = {
    "light": (1, 1, 1, 1),
    "dark": (0.08, 0.08, 0.08, 1),
}
SORT_LABELS: dict[SortKey, str] = {
    SortKey.TIME: "Time",
    SortKey.GLUCOSE: "Glucose (mg/dL)",
    SortKey.PUNCTURE_SPOT: "Puncture Spot",
}


def run_app(data_dir: Path | None = None) -> int:
    """Lanza la app Kivy."""
    from kivy.app import App
    from kivy.core.window import Window
    from kivy.uix.boxlayout import BoxLayout
    from kivy.uix.button import Button
    from kivy.uix.gridlayout import GridLayout
    from kivy.uix.label import Label
    from kivy.uix.popup import Popup
    from kivy.uix.screenmanager import Screen, ScreenManager
    from kivy.uix.scrollview import ScrollView
    from kivy.uix.textinput import TextInput

    base_dir = data_dir if data_dir is not None else default_data_dir()

    class GlucoseLogApp(App):
        """Main Kivy app."""

        def __init__(self, **kwargs: object) -> None:
            super().__init__(**kwargs)
            self.title = APP_TITLE
            self.store = ReadingStore(base_dir / READINGS_FILENAME)
            self.settings_store = SettingsStore(base_dir / SETTINGS_FILENAME)
            self.app_settings = self.settings_store.load()
            self.form = EntryForm()
            self.view = ReadingsView.from_settings(self.app_settings)
            self.manager: ScreenManager | None = None
            self.glucose_input: TextInput | None = None
            self.note_input: TextInput | None = None
            self.spot_input: TextInput | None = None
            self.last_label: Label | None = None
            self.rows_grid: GridLayout | None = None
            self.page_label: Label | None = None
            self.sort_buttons: dict[SortKey, Button] = {}
            self.settings_label: Label | None = None

        def build(self) -> BoxLayout | ScreenManager:
            Window.bind(on_key_down=self._on_key_down)
            try:
                self.store.initialize()
            except StorageError as exc:
                # Sin almacenamiento la app no es usable.
                root = BoxLayout(orientation="vertical", padding=20)
                root.add_widget(Label(text=f"Storage unavailable:\n{exc}"))
                return root

            self._apply_colour_scheme()
            self.manager = ScreenManager()
            self.manager.add_widget(self._build_home())
            self.manager.add_widget(self._build_readings())
            self.manager.add_widget(self._build_settings())
            self.manager.add_widget(self._build_about())
            return self.manager

        def _on_key_down(
            self,
            _window: object,
            keycode: int,
            _scancode: int,
            _text: str,
            _modifiers: list[str],
        ) -> bool:
            # Esc/back: volver al inicio o cerrar app.
            if keycode != 27:
                return False
            if self.manager is not None and self.manager.current != "home":
                self._go("home")
            else:
                self.stop()
            return True

        def _font(self) -> int:
            return FONT_SIZE_SP.get(self.app_settings.font_size, 15)

        def _label(self, text: str, **kwargs: object) -> Label:
            return Label(text=text, font_size=f"{self._font()}sp", **kwargs)

        def _button(self, text: str, on_press, **kwargs: object) -> Button:
            btn = Button(text=text, font_size=f"{self._font()}sp", **kwargs)
            btn.bind(on_press=lambda *_args: on_press())
            return btn

        def _go(self, screen: str) -> None:
            if self.manager is None:
                return
            if screen == "readings":
                self._refresh_readings()
            self.manager.current = screen

        def _build_home(self) -> Screen:
            screen = Screen(name="home")
            box = BoxLayout(orientation="vertical", spacing=12, padding=20)
            box.add_widget(self._label(APP_TITLE, size_hint_y=None, height=40))

            self.glucose_input = TextInput(
                hint_text="Enter glucose (mg/dL)",
                input_filter="float",
                multiline=False,
                size_hint_y=None,
                height=44,
            )
            self.note_input = TextInput(
                hint_text="Note (optional)",
                multiline=False,
                size_hint_y=None,
                height=44,
            )
            self.spot_input = TextInput(
                hint_text="Puncture Spot (e.g., finger & side)",
                multiline=False,
                size_hint_y=None,
                height=44,
            )
            for widget in (self.glucose_input, self.note_input, self.spot_input):
                box.add_widget(widget)

            buttons = BoxLayout(spacing=8, size_hint_y=None, height=44)
            buttons.add_widget(self._button("Submit", self._on_submit))
            buttons.add_widget(
                self._button("View Readings", lambda: self._go("readings"))
            )
            box.add_widget(buttons)

            more = BoxLayout(spacing=8, size_hint_y=None, height=44)
            more.add_widget(self._button("Settings", lambda: self._go("settings")))
            more.add_widget(self._button("About", lambda: self._go("about")))
            box.add_widget(more)

            self.last_label = self._label("", size_hint_y=None, height=30)
            box.add_widget(self.last_label)
            box.add_widget(BoxLayout())
            screen.add_widget(box)
            return screen

        def _on_submit(self) -> None:
            inputs = (self.glucose_input, self.note_input, self.spot_input)
            if any(widget is None for widget in inputs):
                return
            self.form.glucose = self.glucose_input.text
            self.form.note = self.note_input.text
            self.form.puncture_spot = self.spot_input.text
            try:
                self.form.submit(self.store)
            except InvalidGlucose as exc:
                self._alert("Validation", str(exc))
                return
            except StorageError as exc:
                logger.error("Saving reading failed: %s", exc)
                self._alert("Error", "The reading could not be saved.")
                return
            self.glucose_input.text = ""
            self.note_input.text = ""
            self.spot_input.text = ""
            if self.last_label is not None:
                self.last_label.text = f"Last: {self.form.last_submitted} mg/dL"
            self._alert("Saved", f"Glucose {self.form.last_submitted} saved.")

        def _build_readings(self) -> Screen:
            screen = Screen(name="readings")
            box = BoxLayout(orientation="vertical", spacing=6, padding=12)

            header = BoxLayout(size_hint_y=None, height=40)
            header.add_widget(self._label("Readings"))
            header.add_widget(
                self._button("Back", lambda: self._go("home"), size_hint_x=0.3)
            )
            box.add_widget(header)

            sort_row = BoxLayout(size_hint_y=None, height=40, spacing=4)
            for key in SortKey:
                btn = self._button(
                    SORT_LABELS[key], lambda key=key: self._on_sort(key)
                )
                self.sort_buttons[key] = btn
                sort_row.add_widget(btn)
            sort_row.add_widget(self._label("Note"))
            sort_row.add_widget(self._label("", size_hint_x=0.6))
            box.add_widget(sort_row)

            self.rows_grid = GridLayout(cols=1, spacing=2, size_hint_y=None)
            self.rows_grid.bind(minimum_height=self.rows_grid.setter("height"))
            scroll = ScrollView()
            scroll.add_widget(self.rows_grid)
            box.add_widget(scroll)

            pager = BoxLayout(size_hint_y=None, height=40, spacing=8)
            pager.add_widget(self._button("Prev", self._on_prev))
            self.page_label = self._label("")
            pager.add_widget(self.page_label)
            pager.add_widget(self._button("Next", self._on_next))
            box.add_widget(pager)

            screen.add_widget(box)
            return screen

        def _refresh_readings(self) -> None:
            if self.rows_grid is None:
                return
            page = self.view.load(self.store)
            self.rows_grid.clear_widgets()
            if not page.items:
                self.rows_grid.add_widget(
                    self._label("No readings yet.", size_hint_y=None, height=40)
                )
            for reading in page.items:
                self.rows_grid.add_widget(self._reading_row(reading))
            if self.page_label is not None:
                self.page_label.text = (
                    f"Page {self.view.page}/{self.view.page_count} "
                    f"({self.view.total})"
                )
            for key, btn in self.sort_buttons.items():
                arrow = ""
                if key == self.view.sort_key:
                    arrow = " ^" if self.view.direction is SortDirection.ASC else " v"
                btn.text = SORT_LABELS[key] + arrow

        def _reading_row(self, reading: Reading) -> BoxLayout:
            row = BoxLayout(size_hint_y=None, height=36)
            row.add_widget(self._label(reading.time))
            row.add_widget(self._label(f"{reading.glucose:g}"))
            row.add_widget(self._label(reading.puncture_spot or "-"))
            row.add_widget(self._label(reading.note or "-"))
            row.add_widget(
                self._button(
                    "Delete",
                    lambda: self._confirm_delete(reading),
                    size_hint_x=0.6,
                )
            )
            return row

        def _on_sort(self, key: SortKey) -> None:
            self.view.sort_by(key)
            self.app_settings = replace(
                self.app_settings,
                sort_key=key,
                sort_direction=self.view.direction,
            )
            self.settings_store.save(self.app_settings)
            self._refresh_readings()

        def _on_prev(self) -> None:
            if self.view.prev_page():
                self._refresh_readings()

        def _on_next(self) -> None:
            if self.view.next_page():
                self._refresh_readings()

        def _confirm_delete(self, reading: Reading) -> None:
            content = BoxLayout(orientation="vertical", spacing=8, padding=8)
            content.add_widget(
                self._label(f"Delete reading {reading.glucose:g} mg/dL?")
            )
            buttons = BoxLayout(size_hint_y=None, height=42, spacing=8)
            popup = Popup(title="Confirm", content=content, size_hint=(0.8, 0.4))

            def do_delete() -> None:
                popup.dismiss()
                try:
                    self.view.delete(self.store, reading.id)
                except StorageError as exc:
                    logger.error("Deleting reading failed: %s", exc)
                    self._alert("Error", "The reading could not be deleted.")
                    return
                self._refresh_readings()

            buttons.add_widget(self._button("Cancel", popup.dismiss))
            buttons.add_widget(self._button("Delete", do_delete))
            content.add_widget(buttons)
            popup.open()

        def _build_settings(self) -> Screen:
            screen = Screen(name="settings")
            box = BoxLayout(orientation="vertical", spacing=10, padding=20)
            box.add_widget(self._label("Settings", size_hint_y=None, height=40))

            def choice_row(title: str, values, on_pick) -> None:
                box.add_widget(self._label(title, size_hint_y=None, height=30))
                row = BoxLayout(spacing=8, size_hint_y=None, height=44)
                for value in values:
                    row.add_widget(
                        self._button(
                            str(value).capitalize(),
                            lambda value=value: on_pick(value),
                        )
                    )
                box.add_widget(row)

            choice_row(
                "Items per page",
                PAGE_SIZE_CHOICES,
                lambda v: self._update_settings(page_size=v),
            )
            choice_row(
                "Font Size", FONT_SIZES, lambda v: self._update_settings(font_size=v)
            )
            choice_row(
                "Colour Scheme",
                COLOUR_SCHEMES,
                lambda v: self._update_settings(colour_scheme=v),
            )
            self.settings_label = self._label(
                self._settings_summary(), size_hint_y=None, height=30
            )
            box.add_widget(self.settings_label)
            box.add_widget(
                self._button(
                    "Back", lambda: self._go("home"), size_hint_y=None, height=44
                )
            )
            box.add_widget(BoxLayout())
            screen.add_widget(box)
            return screen

        def _settings_summary(self) -> str:
            s = self.app_settings
            return f"{s.page_size} per page, {s.font_size} font, {s.colour_scheme}"

        def _update_settings(self, **changes: object) -> None:
            self.app_settings = replace(self.app_settings, **changes)
            self.settings_store.save(self.app_settings)
            if "page_size" in changes:
                self.view.set_page_size(self.app_settings.page_size)
            if "colour_scheme" in changes:
                self._apply_colour_scheme()
            if self.settings_label is not None:
                self.settings_label.text = self._settings_summary()

        def _apply_colour_scheme(self) -> None:
            colour = CLEAR_COLOURS.get(self.app_settings.colour_scheme)
            if colour is not None:
                Window.clearcolor = colour

        def _build_about(self) -> Screen:
            screen = Screen(name="about")
            box = BoxLayout(orientation="vertical", spacing=8, padding=20)
            box.add_widget(self._label("About", size_hint_y=None, height=40))
            box.add_widget(self._label(APP_TITLE))
            box.add_widget(self._label(f"Version {APP_VERSION}"))
            box.add_widget(
                self._label("A simple app to record glucose readings and notes.")
            )
            box.add_widget(
                self._button(
                    "Back", lambda: self._go("home"), size_hint_y=None, height=44
                )
            )
            screen.add_widget(box)
            return screen

        def _alert(self, title: str, message: str) -> None:
            content = BoxLayout(orientation="vertical", spacing=8, padding=8)
            content.add_widget(self._label(message))
            popup = Popup(title=title, content=content, size_hint=(0.8, 0.4))
            content.add_widget(
                self._button("OK", popup.dismiss, size_hint_y=None, height=42)
            )
            popup.open()

    GlucoseLogApp().run()
    return 0