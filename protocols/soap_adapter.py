"""
SOAP adapter for the HTTPS and IEEE 802.1X certificate bindings.

A soap-envelope Fault element is the only error signal; any other document
is a success whatever its shape.
"""

from typing import Optional

from lxml import etree

from config.orchestrator_config import AXIS_API
from protocols.base import ProtocolAdapter
from protocols.core.types import UNBOUND_ALIAS, ApiEnvelope, ApiType, CertificateUsage, HttpMethod
from protocols.templates import (
    GET_HTTPS_TEMPLATE,
    GET_IEEE_TEMPLATE,
    SET_HTTPS_TEMPLATE,
    SET_IEEE_TEMPLATE,
    RequestTemplates,
)
from utils.errors import PolicyRejection, ProtocolInvariantViolation

_SOAP_NS = AXIS_API.SOAP_ENVELOPE_NS

# usage -> (get template, set template, alias tag)
_BINDINGS = {
    CertificateUsage.HTTPS: (GET_HTTPS_TEMPLATE, SET_HTTPS_TEMPLATE, AXIS_API.HTTPS_ALIAS_TAG),
    CertificateUsage.IEEE8021X: (GET_IEEE_TEMPLATE, SET_IEEE_TEMPLATE, AXIS_API.IEEE_ALIAS_TAG),
}


def _parser() -> etree.XMLParser:
    return etree.XMLParser(resolve_entities=False, no_network=True, remove_blank_text=True)


def extract_alias(root: etree._Element, qualified_tag: str) -> str:
    """
    Returns the text of the single element named ``prefix:localname``.

    The tag is matched by the prefix the device used, as the Axis responses
    always do, rather than by namespace URI.

    Args:
        root: parsed response
        qualified_tag: e.g. "acert:Id"

    Returns:
        Alias, or UNBOUND_ALIAS when no element matches

    Raises:
        ProtocolInvariantViolation: If more than one element matches
    """
    prefix, _, localname = qualified_tag.rpartition(":")
    matches = [
        element for element in root.iter(tag=etree.Element)
        if etree.QName(element).localname == localname and (element.prefix or "") == prefix
    ]
    if len(matches) > 1:
        raise ProtocolInvariantViolation(
            f"More than 1 certificate alias ('{qualified_tag}') was found in the SOAP response"
        )
    if not matches:
        return UNBOUND_ALIAS
    return (matches[0].text or "").strip()


class SoapAdapter(ProtocolAdapter):
    """
    Reads and writes the HTTPS and IEEE 802.1X certificate bindings.
    """

    api_type = ApiType.SOAP
    entry_point = AXIS_API.SOAP_ENTRY_POINT
    content_type = "application/xml"

    def __init__(self, transport, templates: Optional[RequestTemplates] = None, logger=None):
        super().__init__(transport, logger)
        self.templates = templates or RequestTemplates()

    def decode(self, raw: str) -> ApiEnvelope:
        try:
            root = etree.fromstring(raw.encode("utf-8"), parser=_parser())
        except etree.XMLSyntaxError as e:
            raise ProtocolInvariantViolation(f"Unable to parse SOAP response: {e}") from e

        if root.tag == f"{{{_SOAP_NS}}}Fault":
            fault = root
        else:
            fault = root.find(f".//{{{_SOAP_NS}}}Fault")
        if fault is None:
            return ApiEnvelope(ok=True, value=root)

        code = fault.findtext(f".//{{{_SOAP_NS}}}Value")
        reason = fault.findtext(f".//{{{_SOAP_NS}}}Text")
        detail = None
        detail_element = fault.find(f"{{{_SOAP_NS}}}Detail")
        if detail_element is not None:
            children = list(detail_element.iterchildren(tag=etree.Element))
            detail = etree.QName(children[0]).localname if children else None
            self.logger.debug(f"SOAP Fault detail element: {detail or '(none)'}")

        return ApiEnvelope(
            ok=False,
            error_code=code.strip() if code else None,
            error_message=reason.strip() if reason else "(No error reason provided)",
            detail=detail,
        )

    def _binding(self, usage: CertificateUsage):
        try:
            return _BINDINGS[usage]
        except KeyError:
            raise PolicyRejection(f"Certificate usage '{usage.label}' is not handled by the SOAP API") from None

    def get_usage_binding(self, usage: CertificateUsage) -> str:
        """
        Returns the alias bound to usage, or UNBOUND_ALIAS.
        """
        get_template, _, tag = self._binding(usage)
        self.logger.debug(f"Reading XML request body template {get_template}")
        body = self.templates.load(get_template)

        envelope = self.invoke(f"GetUsageBinding({usage.label})", "", HttpMethod.POST, body)
        alias = extract_alias(envelope.value, tag)
        if alias == UNBOUND_ALIAS:
            self.logger.debug(f"No certificate bound to '{usage.label}'")
        return alias

    def set_usage_binding(self, alias: str, usage: CertificateUsage) -> None:
        _, set_template, _ = self._binding(usage)
        self.logger.debug(f"Reading XML request body template {set_template}")
        body = self.templates.render_xml(set_template, ALIAS=alias)

        self.invoke(f"SetUsageBinding({usage.label})", "", HttpMethod.POST, body)
