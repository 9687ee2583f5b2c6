"""Legal document analysis core.

Post-processing pipeline for generative-model output:
  1. Text Normalizer (markup -> display text)
  2. Bias Response Parser (report -> findings)
  3. Aggregation & Record Builder (findings -> AnalysisRecord)
  4. Analysis Orchestrator (concurrent generation, parsing, persistence)

Input:  document text + DocumentMeta
Output: AnalysisRecord (persisted through an AnalysisStore)
"""
