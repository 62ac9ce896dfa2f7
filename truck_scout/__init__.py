"""Food truck event scraper: sources -> LLM extraction -> deduplicated Events sheet."""
