# src/fareview/providers/base.py

from abc import ABC, abstractmethod
from fareview.core.models import SearchParams, SearchResponse


class FlightSearchProvider(ABC):

    @abstractmethod
    def search(self, params: SearchParams, max_results: int) -> SearchResponse:
        ...
