from harvester.browser.base import BrowsingSession, PageElement, Scope

__all__ = ["BrowsingSession", "PageElement", "Scope"]
