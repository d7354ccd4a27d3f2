"""
Servicio de archivos: subida de PDFs a la sección Files de la tienda destino.
"""

from .pdf_uploader import PdfFileUploader, build_report_row, handle_from_file_url, upload_pdf_files

__all__ = [
    "PdfFileUploader",
    "build_report_row",
    "handle_from_file_url",
    "upload_pdf_files",
]
