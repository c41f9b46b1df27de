from sf_rdf_query.converter.result_mapper import Binding, ResultMapper

__all__ = ["Binding", "ResultMapper"]
