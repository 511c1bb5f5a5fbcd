"""Job document generation.

Key exports:
    generate_job_pdf()              Branded quote / work order / invoice / report PDF
    generate_template_document()    Fill a stored .docx template for a job
    resolve_doc_type()              Document type → title, colors, financial flag
    format_currency()               1234.5 → "1,234.50"
    deliver_artifact()              Save a generated file under a safe, unused name
"""
