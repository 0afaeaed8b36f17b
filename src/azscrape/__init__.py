"""azscrape - Azure inventory metrics collector with restart-safe caching

Philosophy:
- Ruthless simplicity
- Brick architecture (self-contained modules)
- Security by design (no credentials in code)
- Fail fast on misconfiguration, degrade gracefully on storage trouble

azscrape periodically collects Azure inventory metrics, memoizes discovery
calls with a TTL cache and persists the latest results to a local file or an
Azure storage blob so a restarted collector resumes without re-scraping early.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
