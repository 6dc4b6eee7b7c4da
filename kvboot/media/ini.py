from __future__ import annotations

import configparser
import io
from typing import Dict, Iterable, List, Tuple


class IniMedia:
    """INI files; options become ``section.option`` keys."""

    media_type = "text/x-ini"
    file_extensions = ("ini", "cfg")

    def _parser(self) -> configparser.ConfigParser:
        parser = configparser.ConfigParser(interpolation=None)
        parser.optionxform = str  # keep key case
        return parser

    def parse(self, text: str) -> List[Tuple[str, str]]:
        parser = self._parser()
        parser.read_string(text)
        pairs: List[Tuple[str, str]] = list(parser.defaults().items())
        for section in parser.sections():
            for key, value in parser.items(section):
                pairs.append((f"{section}.{key}", value))
        return pairs

    def format(self, pairs: Iterable[Tuple[str, str]]) -> str:
        parser = self._parser()
        sections: Dict[str, Dict[str, str]] = {}
        for key, value in pairs:
            if "." not in key:
                section, option = configparser.DEFAULTSECT, key
            else:
                section, option = key.split(".", 1)
            sections.setdefault(section, {})[option] = value
        for section, options in sections.items():
            if section != configparser.DEFAULTSECT:
                parser.add_section(section)
            for option, value in options.items():
                parser.set(section, option, value)
        out = io.StringIO()
        parser.write(out)
        return out.getvalue()
