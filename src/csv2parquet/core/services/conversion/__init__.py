"""
CSV to Parquet conversion: schema detection, row encoding, the Parquet writer
adapter, the per-file converter and the batch service.
"""
