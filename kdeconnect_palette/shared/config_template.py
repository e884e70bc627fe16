default_config = {
    "_section_hint": (
        "Configuration for kdeconnect-palette, a command palette and "
        "status line bridge to the KDE Connect daemon."
    ),
    "kdeconnect": {
        "_section_hint": "Settings for talking to the KDE Connect daemon.",
        "device_id": "",
        "device_id_hint": (
            "The id of the paired device every command targets. Leave empty "
            "to pick it at runtime: a single device is selected automatically, "
            "several devices trigger a prompt. The id is not checked against "
            "the daemon."
        ),
        "renderer": "",
        "renderer_hint": (
            "Optional battery status renderer given as 'package.module:function'. "
            "The function receives (is_charging, charge) and returns a "
            "(display, detail) pair. Leave empty for the built-in format "
            "'[<charge>%]'."
        ),
    },
    "logging": {
        "_section_hint": "Logging output.",
        "level": "WARNING",
        "level_hint": "One of DEBUG, INFO, WARNING, ERROR.",
    },
}
