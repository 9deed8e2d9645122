from ingest_articles.models import SourceFeed

DEFAULT_SOURCES = [
    # Cambodia / region
    SourceFeed("Khmer Times", "https://www.khmertimeskh.com/feed/"),
    SourceFeed("Phnom Penh Post", "https://www.phnompenhpost.com/rss", enabled=False),
    SourceFeed("VOA Khmer", "https://www.voacambodia.com/rss/", enabled=False),
    SourceFeed("Nikkei Asia", "https://asia.nikkei.com/rss", enabled=False),
    # World
    SourceFeed("BBC World", "https://feeds.bbci.co.uk/news/world/rss.xml", enabled=False),
    SourceFeed("CNN World", "http://rss.cnn.com/rss/edition_world.rss", enabled=False),
    SourceFeed("Al Jazeera", "https://www.aljazeera.com/xml/rss/all.xml", enabled=False),
    SourceFeed("The Guardian World", "https://www.theguardian.com/world/rss", enabled=False),
    SourceFeed("NYTimes World", "https://rss.nytimes.com/services/xml/rss/nyt/World.xml", enabled=False),
    # Technology
    SourceFeed("TechCrunch", "https://techcrunch.com/feed/"),
    SourceFeed("Ars Technica", "https://feeds.arstechnica.com/arstechnica/index", enabled=False),
    SourceFeed("The Verge", "https://www.theverge.com/rss/index.xml", enabled=False),
    # Economy
    SourceFeed("World Bank", "https://www.worldbank.org/en/news/all?format=rss", enabled=False),
]


def find_source(name: str, sources: list[SourceFeed] | None = None) -> SourceFeed | None:
    for source in DEFAULT_SOURCES if sources is None else sources:
        if source.name.lower() == name.lower():
            return source
    return None
