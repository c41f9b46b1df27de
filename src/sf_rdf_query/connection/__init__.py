from sf_rdf_query.connection.fetcher import DocumentFetcher

__all__ = ["DocumentFetcher"]
