"""
Request body templates of the SOAP and CGI APIs.

The bodies live as files next to this module (or in a directory given at
construction) and carry ``{PLACEHOLDER}`` markers that are replaced verbatim.
"""

import json
from pathlib import Path
from typing import Callable, Optional, Union
from xml.sax.saxutils import escape as xml_escape

DEFAULT_TEMPLATE_DIR = Path(__file__).resolve().parent / "templates"

GET_HTTPS_TEMPLATE = "GetHttpsBinding.xml"
SET_HTTPS_TEMPLATE = "SetHttpsBinding.xml"
GET_IEEE_TEMPLATE = "GetIEEEBinding.xml"
SET_IEEE_TEMPLATE = "SetIEEEBinding.xml"
GET_MQTT_TEMPLATE = "GetMQTTBinding.json"
SET_MQTT_TEMPLATE = "SetMQTTBinding.json"


def json_escape(value: str) -> str:
    """Escapes a value for use inside a JSON string literal."""
    return json.dumps(value)[1:-1]


class RequestTemplates:
    """
    Loads and fills request body templates.
    """

    def __init__(self, directory: Optional[Union[str, Path]] = None):
        self.directory = Path(directory) if directory else DEFAULT_TEMPLATE_DIR

    def load(self, name: str) -> str:
        """
        Reads a template.

        Raises:
            FileNotFoundError: If the template file is missing
        """
        return (self.directory / name).read_text(encoding="utf-8")

    def render(self, name: str, escape: Optional[Callable[[str], str]] = None, **values) -> str:
        """
        Reads a template and replaces each ``{KEY}`` with its value.

        Args:
            name: template file name
            escape: applied to every value before substitution
            **values: placeholder values, keyed by placeholder name

        Returns:
            Request body
        """
        body = self.load(name)
        for key, value in values.items():
            text = "" if value is None else str(value)
            body = body.replace("{" + key + "}", escape(text) if escape else text)
        return body

    def render_xml(self, name: str, **values) -> str:
        return self.render(name, escape=xml_escape, **values)

    def render_json(self, name: str, **values) -> str:
        return self.render(name, escape=json_escape, **values)
