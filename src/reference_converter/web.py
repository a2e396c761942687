"""FastAPI + Tailwind interface for the reference converter.

Run with:
    uvicorn reference_converter.web:app --reload
"""
from __future__ import annotations

import tempfile
from html import escape
from pathlib import Path
from secrets import token_hex
from typing import Any, Dict

from fastapi import BackgroundTasks, FastAPI, File, Form, HTTPException, UploadFile
from fastapi.responses import FileResponse, HTMLResponse
from pydantic import BaseModel, Field

from .app import ReferenceConverterApp
from .cli import build_result
from .config import CITATION_STYLES, DEFAULT_STYLE, ConversionOptions, load_provider_settings
from .models import ConversionResult
from .report import render_report

app = FastAPI(title="Reference Converter", description="Convert XML reference exports to BibTeX")

generated_exports: Dict[str, Path] = {}


class ConvertRequest(BaseModel):
    xml: str
    options: ConversionOptions = Field(default_factory=ConversionOptions)


def _build_converter() -> ReferenceConverterApp:
    return ReferenceConverterApp(provider_settings=load_provider_settings())


def _layout(content: str) -> str:
    """Wrap provided content in a Tailwind-powered HTML page."""

    return f"""
    <!doctype html>
    <html lang=\"en\" class=\"h-full bg-gray-50\">
    <head>
        <meta charset=\"utf-8\" />
        <title>Reference Converter</title>
        <link href=\"https://cdn.jsdelivr.net/npm/tailwindcss@3.4.4/dist/tailwind.min.css\" rel=\"stylesheet\" />
    </head>
    <body class=\"min-h-full py-10\">
        <div class=\"max-w-5xl mx-auto px-4\">
            <div class=\"bg-white shadow rounded-lg p-6\">
                <h1 class=\"text-3xl font-semibold text-gray-900\">Reference Converter</h1>
                <p class=\"text-gray-600 mt-2\">Upload an XML reference export or paste its contents to get BibTeX entries and a conversion log.</p>
                {content}
            </div>
        </div>
    </body>
    </html>
    """


def _style_options(selected: str) -> str:
    return "".join(
        f"<option value=\"{style}\"{' selected' if style == selected else ''}>{style}</option>"
        for style in CITATION_STYLES
    )


def _form_page(
    result: ConversionResult | None = None,
    download_token: str | None = None,
    style: str = DEFAULT_STYLE,
) -> str:
    """Render the landing page with optional report output and download link."""

    options_block = f"""
        <div class=\"grid grid-cols-2 gap-2 mt-3 text-sm text-gray-700\">
            <label>Citation style <select name=\"citation_style\" class=\"border border-gray-300 rounded-md\">{_style_options(style)}</select></label>
            <label><input type=\"checkbox\" name=\"use_string_definitions\" value=\"1\" class=\"h-4 w-4\" /> String definitions</label>
            <label><input type=\"checkbox\" name=\"use_biblatex_fields\" value=\"1\" class=\"h-4 w-4\" /> BibLaTeX field names</label>
            <label><input type=\"checkbox\" name=\"enable_api_enhancement\" value=\"1\" class=\"h-4 w-4\" /> Fill missing metadata online</label>
        </div>
    """

    file_form = f"""
    <form action=\"/convert-file\" method=\"post\" enctype=\"multipart/form-data\" class=\"bg-gray-50 border border-gray-200 rounded-lg p-4 mt-6\">
        <h2 class=\"text-xl font-semibold text-gray-800\">Upload XML</h2>
        <label class=\"block text-sm font-medium text-gray-700 mb-2\" for=\"file\">XML export</label>
        <input type=\"file\" name=\"file\" accept=\".xml\" required class=\"block w-full text-sm text-gray-800\" />
        {options_block}
        <button type=\"submit\" class=\"mt-4 inline-flex items-center px-4 py-2 bg-indigo-600 text-white rounded-md shadow hover:bg-indigo-700\">Convert file</button>
    </form>
    """

    text_form = f"""
    <form action=\"/convert-text\" method=\"post\" class=\"bg-gray-50 border border-gray-200 rounded-lg p-4 mt-6\">
        <h2 class=\"text-xl font-semibold text-gray-800\">Paste XML</h2>
        <label class=\"block text-sm font-medium text-gray-700 mb-2\" for=\"xml\">XML text</label>
        <textarea name=\"xml\" required placeholder=\"&lt;xml&gt;&lt;records&gt;...\" class=\"w-full h-44 border border-gray-300 rounded-md p-3 text-sm\"></textarea>
        {options_block}
        <button type=\"submit\" class=\"mt-4 inline-flex items-center px-4 py-2 bg-indigo-600 text-white rounded-md shadow hover:bg-indigo-700\">Convert text</button>
    </form>
    """

    result_block = ""
    if result is not None:
        result_block = f"""
        <div class=\"mt-8\">
            <h2 class=\"text-xl font-semibold text-gray-800\">Conversion Log</h2>
            <pre class=\"mt-3 bg-gray-900 text-green-100 p-4 rounded-lg whitespace-pre-wrap text-sm\">{escape(render_report(result))}</pre>
            <h2 class=\"text-xl font-semibold text-gray-800 mt-6\">BibTeX</h2>
            <pre class=\"mt-3 bg-gray-100 text-gray-900 p-4 rounded-lg whitespace-pre-wrap text-sm\">{escape(result.bibtex)}</pre>
        </div>
        """

    download_block = ""
    if download_token:
        download_block = f"""
        <div class=\"mt-4\">
            <a class=\"inline-flex items-center px-4 py-2 bg-emerald-600 text-white rounded-md shadow hover:bg-emerald-700\" href=\"/download/{download_token}\">Download .bib file</a>
        </div>
        """

    return _layout(file_form + text_form + result_block + download_block)


def _form_options(
    citation_style: str,
    use_string_definitions: bool,
    use_biblatex_fields: bool,
    enable_api_enhancement: bool,
) -> ConversionOptions:
    return ConversionOptions(
        citation_style=citation_style,
        use_string_definitions=use_string_definitions,
        use_biblatex_fields=use_biblatex_fields,
        enable_api_enhancement=enable_api_enhancement,
    )


def _store_export(result: ConversionResult) -> str | None:
    if result.failed:
        return None
    with tempfile.NamedTemporaryFile(delete=False, suffix=".bib", mode="w", encoding="utf-8") as export_tmp:
        export_tmp.write(result.bibtex)
        token = token_hex(8)
        generated_exports[token] = Path(export_tmp.name)
    return token


@app.get("/", response_class=HTMLResponse)
async def home() -> HTMLResponse:
    """Serve the upload/text submission form."""

    return HTMLResponse(_form_page())


@app.post("/convert-text", response_class=HTMLResponse)
async def convert_text(
    xml: str = Form(...),
    citation_style: str = Form(DEFAULT_STYLE),
    use_string_definitions: bool = Form(False),
    use_biblatex_fields: bool = Form(False),
    enable_api_enhancement: bool = Form(False),
) -> HTMLResponse:
    """Convert pasted XML and return the log and BibTeX output."""

    options = _form_options(citation_style, use_string_definitions, use_biblatex_fields, enable_api_enhancement)
    result = _build_converter().convert(xml, options=options)
    return HTMLResponse(_form_page(result, download_token=_store_export(result), style=options.citation_style))


@app.post("/convert-file", response_class=HTMLResponse)
async def convert_file(
    file: UploadFile = File(...),
    citation_style: str = Form(DEFAULT_STYLE),
    use_string_definitions: bool = Form(False),
    use_biblatex_fields: bool = Form(False),
    enable_api_enhancement: bool = Form(False),
) -> HTMLResponse:
    """Convert an uploaded XML export."""

    raw = await file.read()
    try:
        text = raw.decode("utf-8")
    except UnicodeDecodeError:
        raise HTTPException(status_code=400, detail="XML exports must be UTF-8 encoded")

    options = _form_options(citation_style, use_string_definitions, use_biblatex_fields, enable_api_enhancement)
    result = _build_converter().convert(text, options=options)
    return HTMLResponse(_form_page(result, download_token=_store_export(result), style=options.citation_style))


@app.get("/download/{token}")
async def download_export(token: str, tasks: BackgroundTasks) -> FileResponse:
    """Serve a generated .bib file once."""

    path = generated_exports.pop(token, None)
    if not path or not path.exists():
        raise HTTPException(status_code=404, detail="Export not found or expired")

    tasks.add_task(path.unlink, missing_ok=True)
    return FileResponse(path, media_type="application/x-bibtex", filename="references.bib")


@app.get("/styles")
async def styles() -> Dict[str, Any]:
    """List the supported citation styles."""

    return {"styles": list(CITATION_STYLES), "default": DEFAULT_STYLE}


@app.post("/convert")
async def convert(request: ConvertRequest) -> Dict[str, Any]:
    """Convert XML text with JSON options and return the structured result."""

    result = _build_converter().convert(request.xml, options=request.options)
    return build_result(result)


def main() -> None:
    """Run the FastAPI app using uvicorn."""

    import uvicorn

    uvicorn.run("reference_converter.web:app", host="0.0.0.0", port=8000, reload=False)


__all__ = ["app", "main"]
