"""Forecast scraping from a public weather page."""

from __future__ import annotations

import json
import re
import urllib.request

from .models import WeatherReport


_TEMP_RE = re.compile(r'"temperature":({[^}]+})')
_COND_RE = re.compile(r'"conditionDescription":"([^"]+)"')
_RAIN_RE = re.compile(r'"precipitationProbability":([^,]+),')

_USER_AGENT = "Mozilla/5.0 (KeyScreen weather)"


def parse_weather(body: str) -> WeatherReport:
    temperature = None
    temp = _TEMP_RE.search(body)
    if temp:
        try:
            temperature = json.loads(temp.group(1))
        except ValueError:
            temperature = None

    cond = _COND_RE.search(body)
    rain = _RAIN_RE.search(body)
    return WeatherReport(
        temperature=temperature,
        description=(cond.group(1) if cond else None),
        rain=(rain.group(1).strip() if rain else None),
    )


class WeatherProvider:
    def __init__(self, url: str, timeout_s: int = 15) -> None:
        self.url = url
        self.timeout_s = timeout_s

    def fetch(self) -> WeatherReport:
        req = urllib.request.Request(self.url)
        req.add_header("User-Agent", _USER_AGENT)
        with urllib.request.urlopen(req, timeout=self.timeout_s) as resp:
            body = resp.read().decode("utf-8", "replace")
        return parse_weather(body)
