"""Example: run a SELECT query over a local Turtle file plus an in-memory stream of quads."""
from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

from rdflib import RDF, Literal, Namespace

from sf_rdf_query import QueryAdapter, ResultMapper

DATA_DIR = Path(__file__).resolve().parent / "data"
EX = Namespace("https://example.org/people#")
FOAF = Namespace("http://xmlns.com/foaf/0.1/")

QUERY = """
PREFIX foaf: <http://xmlns.com/foaf/0.1/>
SELECT ?person ?name ?age WHERE {
  ?person a foaf:Person ; foaf:name ?name .
  OPTIONAL { ?person foaf:age ?age }
}
ORDER BY ?name
"""


class ExtraPeople:
    """Minimal quad stream: anything exposing ``match`` can be a source."""

    def match(self, subject, predicate, obj, graph):
        yield (EX.dave, FOAF.name, Literal("Dave"))
        yield (EX.dave, FOAF.age, Literal(41))
        yield (EX.dave, RDF.type, FOAF.Person)


async def run_example() -> list[dict[str, Any]]:
    adapter = QueryAdapter([DATA_DIR / "people.ttl", ExtraPeople()])
    mapper = ResultMapper()

    rows: list[dict[str, Any]] = []
    async for binding in adapter.execute(QUERY):
        rows.append(mapper.to_json(binding))
    return rows


async def main() -> None:
    rows = await run_example()
    if not rows:
        print("No rows matched the query.")
        return
    print("Query results:")
    for row in rows:
        print({name: term["value"] for name, term in row.items()})


if __name__ == "__main__":
    asyncio.run(main())
