"""Turns a Notion page's property table and icon into YAML front matter."""

import logging
import re
from typing import Any, Dict, List, Optional

import yaml
from bs4 import BeautifulSoup, Tag
from dateutil import parser as date_parser

DATE_PROPERTY_TYPES = {'date', 'created_time', 'last_edited_time'}
LIST_PROPERTY_TYPES = {'multi_select', 'relation', 'person', 'created_by', 'last_edited_by', 'file'}
SINGLE_SELECT_TYPES = {'select', 'status'}

TIME_OF_DAY = re.compile(r'\d{1,2}:\d{2}')
RANGE_SEPARATOR = '→'


class PropertyParser:
    """Extracts page properties from ``table.properties`` into a dictionary."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger('notion_markdown_migrator.converters.property_parser')

    def extract(self, soup: BeautifulSoup) -> Dict[str, Any]:
        """
        Read and remove the property table of a page.

        Args:
            soup: Parsed page; the property table is removed from it

        Returns:
            Property name to value, in document order
        """
        properties: Dict[str, Any] = {}
        table = soup.find('table', class_='properties')
        if table is None:
            return properties

        for row in table.find_all('tr'):
            header = row.find('th')
            cell = row.find('td')
            if header is None or cell is None:
                continue
            key = header.get_text(' ', strip=True)
            if not key:
                continue
            value = self._parse_value(self._property_type(row), cell)
            if value is None or value == '' or value == []:
                continue
            properties[key] = value

        table.decompose()
        return properties

    @staticmethod
    def _property_type(row: Tag) -> str:
        for cls in row.get('class', []):
            if cls.startswith('property-row-'):
                return cls[len('property-row-'):]
        return 'text'

    def _parse_value(self, property_type: str, cell: Tag) -> Any:
        if property_type == 'checkbox':
            checkbox = cell.find(class_='checkbox')
            return bool(checkbox and 'checkbox-on' in checkbox.get('class', []))

        if property_type in DATE_PROPERTY_TYPES:
            return self._parse_date(cell.get_text(' ', strip=True))

        if property_type in LIST_PROPERTY_TYPES:
            return self._list_values(cell)

        if property_type in SINGLE_SELECT_TYPES:
            values = self._list_values(cell)
            return values[0] if values else None

        if property_type == 'number':
            return self._parse_number(cell.get_text(strip=True))

        if property_type == 'url':
            link = cell.find('a', href=True)
            return link['href'] if link else cell.get_text(strip=True)

        return cell.get_text(' ', strip=True)

    @staticmethod
    def _list_values(cell: Tag) -> List[str]:
        values = [
            item.get_text(' ', strip=True)
            for item in cell.find_all(['span', 'a'], class_=['selected-value', 'user'])
        ]
        if not values:
            values = [link.get_text(' ', strip=True) for link in cell.find_all('a')]
        if not values:
            text = cell.get_text(' ', strip=True)
            values = [part.strip() for part in text.split(',')] if text else []
        return [value for value in values if value]

    def _parse_date(self, text: str) -> Optional[str]:
        """Normalise a rendered date; a range keeps its start."""
        text = text.lstrip('@').strip()
        if not text:
            return None
        start = text.split(RANGE_SEPARATOR)[0].strip()
        try:
            parsed = date_parser.parse(start)
        except (ValueError, OverflowError):
            self.logger.debug(f"Keeping unparsed date property '{text}'")
            return text
        if TIME_OF_DAY.search(start):
            return parsed.isoformat(timespec='minutes')
        return parsed.date().isoformat()

    @staticmethod
    def _parse_number(text: str) -> Any:
        cleaned = text.replace(',', '').strip()
        try:
            return int(cleaned)
        except ValueError:
            pass
        try:
            return float(cleaned)
        except ValueError:
            return text


def extract_icon(soup: BeautifulSoup) -> Optional[str]:
    """Glyph of the page icon, if the page has a text icon."""
    holder = soup.find(class_='page-header-icon')
    if holder is None:
        return None
    icon = holder.find(class_='icon')
    if icon is None:
        return None
    if icon.name == 'img':
        return icon.get('alt') or None
    glyph = icon.get_text(strip=True)
    return glyph or None


def generate_frontmatter(properties: Dict[str, Any]) -> str:
    """
    Render properties as a YAML front matter block.

    Returns:
        The block including the ``---`` fences, or '' when empty
    """
    if not properties:
        return ''
    yaml_str = yaml.dump(
        properties,
        default_flow_style=False,
        allow_unicode=True,
        sort_keys=False,
        width=1000
    )
    return f"---\n{yaml_str}---\n"


__all__ = ['PropertyParser', 'extract_icon', 'generate_frontmatter']
