"""Reusable Kivy components for the ClipBooth client."""

from __future__ import annotations

from kivy.factory import Factory
from kivy.lang import Builder
from kivy.properties import NumericProperty, StringProperty
from kivymd.uix.card import MDCard


class InfoBannerCard(MDCard):
    """MDCard wrapper that exposes a message prop for KV templates."""

    message = StringProperty("")


class LevelBarCard(MDCard):
    """Horizontal input meter; level is a 0-100 percentage."""

    level = NumericProperty(0)


Factory.register("InfoBannerCard", cls=InfoBannerCard)
Factory.register("LevelBarCard", cls=LevelBarCard)

COMPONENT_KV = """
<BoothScaffold@MDBoxLayout>:
    orientation: "vertical"
    padding: app.theme.spacing.grid, 0, app.theme.spacing.grid, app.theme.spacing.grid
    canvas.before:
        Color:
            rgba: app.theme.palette.background
        Rectangle:
            pos: self.pos
            size: self.size

<BoothToolbar@MDTopAppBar>:
    md_bg_color: 0, 0, 0, 0
    specific_text_color: app.theme.palette.text_primary
    elevation: 0
    left_action_items: []
    right_action_items: []
    anchor_title: "left"

<BoothCard@MDCard>:
    orientation: "vertical"
    size_hint_y: None
    adaptive_height: True
    padding: app.theme.spacing.card_padding
    spacing: app.theme.spacing.grid
    radius: [22]
    md_bg_color: app.theme.palette.card
    line_color: 0, 0, 0, 0

<SectionHeading@MDLabel>:
    font_style: app.theme.typography.title
    theme_text_color: "Custom"
    text_color: app.theme.palette.text_primary
    bold: True
    size_hint_y: None
    height: self.texture_size[1]

<BodyText@MDLabel>:
    font_style: app.theme.typography.body
    theme_text_color: "Custom"
    text_color: app.theme.palette.text_secondary
    size_hint_y: None
    height: self.texture_size[1]

<ClockLabel@MDLabel>:
    text: app.timer_text
    halign: "center"
    font_style: app.theme.typography.clock
    theme_text_color: "Custom"
    text_color: app.theme.palette.recording if app.capture_state == "RECORDING" else app.theme.palette.text_primary
    size_hint_y: None
    height: self.texture_size[1]

<PrimaryButton@MDFillRoundFlatIconButton>:
    size_hint_y: None
    height: "50dp"
    md_bg_color: app.theme.palette.accent
    text_color: app.theme.palette.background
    icon_color: app.theme.palette.background

<SecondaryButton@MDFillRoundFlatIconButton>:
    size_hint_y: None
    height: "50dp"
    md_bg_color: app.theme.palette.surface_alt
    text_color: app.theme.palette.text_primary
    icon_color: app.theme.palette.accent_muted
    line_color: app.theme.palette.outline

<LevelBar@LevelBarCard>:
    level: app.input_level
    size_hint_y: None
    height: app.theme.spacing.meter_height
    radius: [7]
    md_bg_color: app.theme.palette.surface_alt
    line_color: 0, 0, 0, 0
    canvas.after:
        Color:
            rgba: app.theme.meter_color(self.level)
        RoundedRectangle:
            pos: self.pos
            size: self.width * max(0, min(self.level, 100)) / 100.0, self.height
            radius: [7]

<RoundedInput@MDTextField>:
    mode: "rectangle"
    helper_text_mode: "on_focus"
    line_color_focus: app.theme.palette.accent_muted
    text_color_focus: app.theme.palette.text_primary
    text_color_normal: app.theme.palette.text_secondary
    hint_text_color_normal: app.theme.palette.text_muted
    size_hint_y: None
    height: "72dp"

<CaptionText@MDLabel>:
    theme_text_color: "Custom"
    text_color: app.theme.palette.text_secondary
    font_style: app.theme.typography.caption
    size_hint_y: None
    height: self.texture_size[1]

<InfoBanner@InfoBannerCard>:
    size_hint_y: None
    adaptive_height: True
    padding: app.theme.spacing.grid
    spacing: app.theme.spacing.grid
    md_bg_color: app.theme.palette.surface_alt
    line_color: 0, 0, 0, 0
    radius: [18]
    MDIcon:
        icon: "information-outline"
        theme_text_color: "Custom"
        text_color: app.theme.palette.accent_muted
    MDLabel:
        text: root.message
        theme_text_color: "Custom"
        text_color: app.theme.palette.text_secondary
        font_style: app.theme.typography.body
        text_size: self.width, None
        size_hint_y: None
        height: self.texture_size[1]

<ActivityLog@MDCard>:
    orientation: "vertical"
    size_hint_y: None
    adaptive_height: True
    padding: app.theme.spacing.card_padding
    radius: [22]
    md_bg_color: app.theme.palette.surface
    line_color: 0, 0, 0, 0
    spacing: app.theme.spacing.grid
    SectionHeading:
        text: "Activity"
    MDLabel:
        text: '\\n'.join(app.log_lines[-8:])
        theme_text_color: "Custom"
        text_color: app.theme.palette.text_secondary
        font_style: app.theme.typography.caption
        text_size: self.width, None
        size_hint_y: None
        height: self.texture_size[1]
"""


def load_components() -> None:
    """Register shared KV component templates."""
    Builder.load_string(COMPONENT_KV)


__all__ = ["load_components"]
