"""
Services Layer

Pure bracket engines that:
- Accept domain inputs (candidate pool, config, tournament drafts)
- Return new domain outputs (drafts, layouts, published records)
- Do NOT depend on HTTP request/response objects
- Do NOT perform I/O or mutate their inputs
"""
