"""
Report Mapper - Column Mapping and Report Summarization Engine.

Reads tabular uploads whose column names vary from file to file, maps
them onto a fixed set of target fields, and summarises the mapped rows
into report-ready totals, periods and category counts.

Every automatic mapping carries a confidence score and a list of the
columns it could not place.  Invalid mappings are reported, never
silently applied.
"""

__version__ = "1.0.0"
__author__ = "Report Mapper Team"

from report_mapper.pipeline import ReportPipeline  # noqa: F401
