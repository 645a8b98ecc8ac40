# main.py
# Medminder (KivyMD): single-screen medicine list with add / edit / delete.
#
# Run on desktop:            python main.py
#
# Buildozer notes (in buildozer.spec):
#   requirements = python3,kivy,kivymd
#   android.api = 34
#   android.minapi = 24
#
# The list lives in memory only; closing the app discards it.

import sys
from typing import Callable, Optional

from kivy.lang import Builder
from kivy.core.window import Window
from kivy.uix.widget import Widget
from kivy.uix.scrollview import ScrollView
from kivy.metrics import dp
from kivy.utils import platform as _kivy_platform

from kivymd.app import MDApp
from kivymd.uix.dialog import MDDialog
from kivymd.uix.button import MDFlatButton, MDRaisedButton, MDFloatingActionButton
from kivymd.uix.list import TwoLineAvatarIconListItem, IconLeftWidget, IconRightWidget
from kivymd.uix.textfield import MDTextField
from kivymd.uix.boxlayout import MDBoxLayout
from kivymd.uix.label import MDLabel

from applog import RING, app_base_dir, clear_log, logger, run_logged, setup_logging
from medstate import FormMode, Medicine, MedicineScreenController, ScreenState
from widgets import GlassCard, PillIcon  # noqa: F401  (registered for KV)

# -------------------------
# Config
# -------------------------
APP_TITLE = "Medminder"
WINDOW_SIZE = (420, 760)
THEME_STYLE = "Dark"
PRIMARY_PALETTE = "Blue"

BASE_DIR = app_base_dir()
LOG_PATH = BASE_DIR / "app.log"

if _kivy_platform != "android" and hasattr(Window, "size"):
    Window.size = WINDOW_SIZE

setup_logging(LOG_PATH)

# -------------------------
# Kivy KV
# -------------------------
KV = """
<PillIcon>:
    size_hint: None, None
    size: "54dp", "54dp"

MDScreen:
    md_bg_color: 0.03, 0.09, 0.16, 1

    MDBoxLayout:
        orientation: "vertical"

        MDTopAppBar:
            title: app.title
            elevation: 10
            right_action_items: [["text-box-outline", lambda x: app.show_log_dialog()]]

        MDBoxLayout:
            orientation: "vertical"
            padding: "12dp"
            spacing: "12dp"

            FloatLayout:
                size_hint_y: None
                height: "84dp"
                GlassCard:
                    pos: self.parent.pos
                    size: self.parent.size
                MDBoxLayout:
                    orientation: "horizontal"
                    padding: "14dp"
                    spacing: "12dp"
                    pos: self.parent.pos
                    size: self.parent.size

                    PillIcon:
                        id: pill
                        pos_hint: {"center_y": 0.5}

                    MDBoxLayout:
                        orientation: "vertical"
                        MDLabel:
                            text: "My medicines"
                            bold: True
                            font_style: "H6"
                        MDLabel:
                            id: med_count
                            text: "—"
                            theme_text_color: "Secondary"

            ScrollView:
                MDList:
                    id: medicines_list

            GlassCard:
                id: form_box
                orientation: "vertical"
                padding: "12dp"
                spacing: "8dp"
                size_hint_y: None
                height: self.minimum_height
"""

# -------------------------
# App
# -------------------------
class MedminderApp(MDApp):
    def __init__(self, controller: Optional[MedicineScreenController] = None, **kwargs):
        super().__init__(**kwargs)
        self.controller = controller or MedicineScreenController()
        self._log_dialog: Optional[MDDialog] = None
        self._rendered: Optional[ScreenState] = None
        self._typing = False

    def build(self):
        self.title = APP_TITLE
        self.theme_cls.theme_style = THEME_STYLE
        self.theme_cls.primary_palette = PRIMARY_PALETTE
        return Builder.load_string(KV)

    def on_start(self):
        logger.info(f"app start platform={_kivy_platform} base={BASE_DIR}")
        self.controller.subscribe(self.render)
        self.render(self.controller.state)

    def on_stop(self):
        logger.info(f"app stop medicines={len(self.controller.medicines)}")

    # -------------------------
    # Actions (wired to widgets)
    # -------------------------
    def _dispatch(self, action: Callable, *args):
        run_logged(action, *args)

    # -------------------------
    # Render
    # -------------------------
    def render(self, state: ScreenState):
        prev = self._rendered
        self._rendered = state
        if prev is None or prev.medicines != state.medicines:
            self.render_medicines(state)
        # keystrokes already show in the focused field; rebuilding would drop focus
        if prev is None or (not self._typing and prev.form != state.form):
            self.render_form(state)
        pill = self.root.ids.pill
        pill.count = len(state.medicines)
        pill.active = state.form.is_open

    def render_medicines(self, state: ScreenState):
        try:
            ml = self.root.ids.medicines_list
            ml.clear_widgets()
            for row in self.controller.rows:
                ml.add_widget(self._medicine_item(row.medicine, row.text, row.secondary_text))
            self.root.ids.med_count.text = f"{len(state.medicines)} medicines"
        except Exception:
            logger.exception("render_medicines failed")

    def _medicine_item(self, med: Medicine, text: str, secondary_text: str):
        item = TwoLineAvatarIconListItem(text=text, secondary_text=secondary_text)
        item.add_widget(IconLeftWidget(
            icon="pencil", on_release=lambda *_, m=med: self._dispatch(self.controller.start_edit, m)))
        item.add_widget(IconRightWidget(
            icon="delete", on_release=lambda *_, m_id=med.id: self._dispatch(self.controller.delete, m_id)))
        return item

    def render_form(self, state: ScreenState):
        box = self.root.ids.form_box
        box.clear_widgets()
        form = state.form

        if form.mode is FormMode.IDLE:
            row = MDBoxLayout(orientation="horizontal", size_hint_y=None, height="64dp")
            row.add_widget(Widget())
            row.add_widget(MDFloatingActionButton(
                icon="plus", on_release=lambda *_: self._dispatch(self.controller.start_add)))
            box.add_widget(row)
            return

        c = self.controller
        fields = (
            ("Medicine Name", form.name, c.change_name),
            ("Dosage", form.dosage, c.change_dosage),
            ("Schedule", form.schedule, c.change_schedule),
        )
        for hint, text, action in fields:
            tf = MDTextField(hint_text=hint, text=text, mode="rectangle")
            tf.bind(text=lambda _, value, action=action: self._on_draft_text(action, value))
            box.add_widget(tf)

        buttons = MDBoxLayout(orientation="horizontal", spacing="10dp", size_hint_y=None, height="48dp")
        buttons.add_widget(MDRaisedButton(
            text=form.submit_label, on_release=lambda *_: self._dispatch(c.submit)))
        buttons.add_widget(MDFlatButton(
            text="Cancel", on_release=lambda *_: self._dispatch(c.cancel)))
        box.add_widget(buttons)

    def _on_draft_text(self, action: Callable, value: str):
        if not self.controller.form.is_open:
            return
        self._typing = True
        try:
            self._dispatch(action, value)
        finally:
            self._typing = False

    # -------------------------
    # Log dialog
    # -------------------------
    def show_log_dialog(self):
        label = MDLabel(text=RING.text(), size_hint_y=None, font_style="Caption")
        label.bind(texture_size=lambda inst, size: setattr(inst, "height", size[1]))
        scroll = ScrollView(size_hint_y=None, height=dp(360))
        scroll.add_widget(label)

        def clear(*_):
            clear_log(LOG_PATH)
            label.text = ""
            logger.info("log cleared")

        self._log_dialog = MDDialog(
            title="Log",
            type="custom",
            content_cls=scroll,
            buttons=[
                MDFlatButton(text="Clear", on_release=clear),
                MDRaisedButton(text="Close", on_release=lambda *_: self._log_dialog.dismiss()),
            ]
        )
        self._log_dialog.open()

# -------------------------
# Entrypoint
# -------------------------
def main():
    logger.info(f"starting {APP_TITLE} argv={sys.argv[1:]}")
    MedminderApp().run()

if __name__ == "__main__":
    main()
