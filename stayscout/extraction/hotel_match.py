"""
Picks the property page that best matches a hotel name on a search-results page.

Scoring is additive:
- full (lowercased) name contained in the card title: +full_match
- each name word longer than two characters found in the title: +shared_word
- href pointing at a foreign-market listing: -foreign_penalty

When every candidate scores below zero the first one is used anyway.
"""

import re
from dataclasses import dataclass
from typing import List, Optional, Pattern

from bs4 import BeautifulSoup

from stayscout.crawler.url_utils import absolute_url

CARD_SELECTOR = '[data-testid="property-card"]'
CARD_TITLE_SELECTOR = '[data-testid="title"], h3, h2, a'
HOTEL_LINK_SELECTOR = 'a[href*="/hotel/"]'

DEFAULT_FOREIGN_HREF = re.compile(r"sandiego|san-diego|usa|united-states", re.I)


@dataclass(frozen=True)
class MatchWeights:
    full_match: int = 100
    shared_word: int = 2
    foreign_penalty: int = 5
    foreign_href: Pattern = DEFAULT_FOREIGN_HREF


@dataclass(frozen=True)
class HotelCandidate:
    title: str
    href: str


def score_candidate(name: str, candidate: HotelCandidate, weights: MatchWeights = MatchWeights()) -> int:
    """
    Example:
        >>> score_candidate("Grand Hotel Tijuana",
        ...                 HotelCandidate("Grand Hotel Tijuana", "/hotel/mx/grand.html"))
        106
    """
    target = (name or "").strip().lower()
    title = (candidate.title or "").lower()
    score = 0
    if target and target in title:
        score += weights.full_match
    for word in target.split():
        if len(word) > 2 and word in title:
            score += weights.shared_word
    if weights.foreign_href.search(candidate.href or ""):
        score -= weights.foreign_penalty
    return score


def choose_candidate(
    name: str,
    candidates: List[HotelCandidate],
    weights: MatchWeights = MatchWeights(),
) -> Optional[HotelCandidate]:
    """Highest-scoring candidate; ties keep page order."""
    if not candidates:
        return None
    best, best_score = None, None
    for cand in candidates:
        s = score_candidate(name, cand, weights)
        if best_score is None or s > best_score:
            best, best_score = cand, s
    if best_score < 0:
        return candidates[0]
    return best


def parse_search_candidates(soup: BeautifulSoup, base_url: str = "") -> List[HotelCandidate]:
    """
    Property cards from a search-results page.

    Falls back to every hotel link on the page when no card markup is present.
    """
    out: List[HotelCandidate] = []
    for card in soup.select(CARD_SELECTOR):
        link = card.select_one(HOTEL_LINK_SELECTOR)
        if link is None or not link.get("href"):
            continue
        title_el = card.select_one(CARD_TITLE_SELECTOR)
        title = title_el.get_text(" ", strip=True) if title_el is not None else ""
        out.append(HotelCandidate(title=title, href=absolute_url(base_url, link["href"])))

    if out:
        return out

    for link in soup.select(HOTEL_LINK_SELECTOR):
        href = link.get("href")
        if href:
            out.append(HotelCandidate(
                title=link.get_text(" ", strip=True),
                href=absolute_url(base_url, href),
            ))
    return out
