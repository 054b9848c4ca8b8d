from .store import StateStore, InMemoryStore, JsonFileStore
