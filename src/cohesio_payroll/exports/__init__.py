"""Regulatory exports of finalized payroll runs."""

from cohesio_payroll.exports.statutory_xml import escape_xml, generate_statutory_xml

__all__ = ["escape_xml", "generate_statutory_xml"]
