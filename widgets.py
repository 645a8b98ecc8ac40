# widgets.py
# Drawn widgets for the Medminder screen. Plain Kivy only: nothing here
# touches kivy.core.window or KivyMD theming, so it imports headless.

from kivy.clock import Clock
from kivy.uix.boxlayout import BoxLayout
from kivy.uix.widget import Widget
from kivy.animation import Animation
from kivy.metrics import dp
from kivy.graphics import Color, Line, RoundedRectangle, Ellipse
from kivy.properties import BooleanProperty, ListProperty, NumericProperty

PILL_EMPTY = [0.45, 0.50, 0.56, 1]
PILL_FEW = [0.33, 0.62, 0.95, 1]
PILL_MANY = [0.36, 0.80, 0.55, 1]

def pill_color(count: int) -> list:
    if count <= 0:
        return list(PILL_EMPTY)
    if count < 5:
        return list(PILL_FEW)
    return list(PILL_MANY)

class GlassCard(BoxLayout):
    # card_radius, not radius: KivyMD layouts own a list-typed `radius`
    card_radius = NumericProperty(dp(22))

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.bind(pos=self._redraw, size=self._redraw, card_radius=self._redraw)
        self._redraw()

    def _redraw(self, *_):
        self.canvas.before.clear()
        x, y = self.pos
        w, h = self.size
        r = float(self.card_radius)
        with self.canvas.before:
            Color(1, 1, 1, 0.06)
            RoundedRectangle(pos=(x, y), size=(w, h), radius=[r])
            Color(1, 1, 1, 0.12)
            Line(rounded_rectangle=[x, y, w, h, r], width=dp(1.2))

class PillIcon(Widget):
    """Pill badge in the header card.

    Colour follows the number of medicines on the list; the glow pulses
    while the add/edit form is open.
    """
    count = NumericProperty(0)
    active = BooleanProperty(False)
    color = ListProperty(PILL_EMPTY)
    pulse = NumericProperty(0.0)

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._anim = None
        self.color = pill_color(self.count)
        self.bind(pos=self._redraw, size=self._redraw, color=self._redraw, pulse=self._redraw)
        self.bind(count=lambda *_: setattr(self, "color", pill_color(self.count)))
        self.bind(active=lambda *_: Clock.schedule_once(lambda *_: self._sync_pulse(), 0))
        self._redraw()

    def _sync_pulse(self):
        if self.active and self._anim is None:
            self._anim = (Animation(pulse=1.0, duration=1.1, t="in_out_sine") +
                          Animation(pulse=0.0, duration=1.1, t="in_out_sine"))
            self._anim.repeat = True
            self._anim.start(self)
        elif not self.active and self._anim is not None:
            self._anim.cancel(self)
            self._anim = None
            self.pulse = 0.0

    def _redraw(self, *_):
        self.canvas.clear()
        cx, cy = self.center
        w = min(self.width, self.height) * 0.62
        h = min(self.width, self.height) * 0.30
        p = float(self.pulse)
        with self.canvas:
            Color(self.color[0], self.color[1], self.color[2], 0.10 + 0.10 * p)
            Ellipse(pos=(cx - w/2 - dp(6), cy - h/2 - dp(6)), size=(w + dp(12), h + dp(12)))
            Color(*self.color)
            RoundedRectangle(pos=(cx - w/2, cy - h/2), size=(w, h), radius=[h/2])
