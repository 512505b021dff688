"""Data models for groups, articles, and overview records."""

from .group import Group
from .article import Article, ArticlePointer
from .overview import MessageOverview
