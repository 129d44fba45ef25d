from typing import List, Dict, Any
from feedhub.models.items import ScrapeSource

# HTML listing pages scraped into the news store
DEFAULT_SCRAPE_SOURCES: List[ScrapeSource] = [
    ScrapeSource(
        name="Stadt Dortmund",
        url="https://www.dortmund.de/de/leben_in_dortmund/medien/aktuelle_nachrichten/index.html",
        base="https://www.dortmund.de",
    ),
]

# Realistic desktop browser UA; some municipal sites reject unidentified clients
BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/91.0.4472.124 Safari/537.36"
)


# Bootstrap content served while the news store is still empty
SEED_OUTLET = "Dortmund Aktuell"

SEED_NEWS: List[Dict[str, Any]] = [
    {
        "title": "Neue Radwege in der Innenstadt freigegeben",
        "description": "Die Stadt hat drei neue Radwege rund um den Wall eröffnet.",
        "content": "<p>Die Stadt hat drei neue Radwege rund um den Wall eröffnet. Weitere Abschnitte folgen im Frühjahr.</p>",
        "date": "2025-10-01T09:00:00+00:00",
        "link": "https://www.dortmund.de/news/radwege-innenstadt",
    },
    {
        "title": "Stadtbibliothek verlängert Öffnungszeiten",
        "description": "Ab November ist die Zentralbibliothek auch sonntags geöffnet.",
        "content": "<p>Ab November ist die Zentralbibliothek auch sonntags von 11 bis 17 Uhr geöffnet.</p>",
        "date": "2025-09-24T14:30:00+00:00",
        "link": "https://www.dortmund.de/news/bibliothek-oeffnungszeiten",
    },
    {
        "title": "Weihnachtsmarkt startet Ende November",
        "description": "Der Baum am Hansaplatz wird ab Mitte November aufgebaut.",
        "content": "<p>Der Weihnachtsmarkt öffnet am 20. November. Der Baum am Hansaplatz wird ab Mitte November aufgebaut.</p>",
        "date": "2025-09-10T08:15:00+00:00",
        "link": "https://www.dortmund.de/news/weihnachtsmarkt",
    },
]
