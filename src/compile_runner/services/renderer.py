# Copyright 2025 John Brosnihan
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""
Output rendering.

Wraps a compiled program in a minimal standalone HTML page that loads the
program and starts it as soon as the page is opened.
"""

from compile_runner.config import settings

# wysiwyg.css v0.0.3 (MIT), applied to the page body for readable defaults.
BASELINE_STYLESHEET = (
    "/*! wysiwyg.css v0.0.3 | MIT License | github.com/jgthms/wysiwyg.css */.wysiwyg{line-height:1.6}"
    ".wysiwyg a{text-decoration:none}"
    ".wysiwyg a:hover{border-bottom:1px solid}"
    ".wysiwyg abbr{border-bottom:1px dotted;cursor:help}"
    ".wysiwyg cite{font-style:italic}"
    ".wysiwyg hr{background:#e6e6e6;border:none;display:block;height:1px;margin-bottom:1.4em;margin-top:1.4em}"
    ".wysiwyg img{vertical-align:text-bottom}"
    ".wysiwyg ins{background-color:lime;text-decoration:none}"
    ".wysiwyg mark{background-color:#ff0}"
    ".wysiwyg small{font-size:0.8em}"
    ".wysiwyg strong{font-weight:700}"
    ".wysiwyg sub,.wysiwyg sup{font-size:0.8em}"
    ".wysiwyg sub{vertical-align:sub}"
    ".wysiwyg sup{vertical-align:super}"
    ".wysiwyg p,.wysiwyg dl,.wysiwyg ol,.wysiwyg ul,.wysiwyg blockquote,.wysiwyg pre,.wysiwyg table{margin-bottom:1.4em}"
    ".wysiwyg p:last-child,.wysiwyg dl:last-child,.wysiwyg ol:last-child,.wysiwyg ul:last-child,.wysiwyg blockquote:last-child,.wysiwyg pre:last-child,.wysiwyg table:last-child{margin-bottom:0}"
    ".wysiwyg p:empty{display:none}"
    ".wysiwyg h1,.wysiwyg h2,.wysiwyg h3,.wysiwyg h4,.wysiwyg h5,.wysiwyg h6{font-weight:700;line-height:1.2}"
    ".wysiwyg h1:first-child,.wysiwyg h2:first-child,.wysiwyg h3:first-child,.wysiwyg h4:first-child,.wysiwyg h5:first-child,.wysiwyg h6:first-child{margin-top:0}"
    ".wysiwyg h1{font-size:2.4em;margin-bottom:.58333em;margin-top:.58333em;line-height:1}"
    ".wysiwyg h2{font-size:1.6em;margin-bottom:.875em;margin-top:1.75em;line-height:1.1}"
    ".wysiwyg h3{font-size:1.3em;margin-bottom:1.07692em;margin-top:1.07692em}"
    ".wysiwyg h4{font-size:1.2em;margin-bottom:1.16667em;margin-top:1.16667em}"
    ".wysiwyg h5{font-size:1.1em;margin-bottom:1.27273em;margin-top:1.27273em}"
    ".wysiwyg h6{font-size:1em;margin-bottom:1.4em;margin-top:1.4em}"
    ".wysiwyg dd{margin-left:1.4em}"
    ".wysiwyg ol,.wysiwyg ul{list-style-position:outside;margin-left:1.4em}"
    ".wysiwyg ol{list-style-type:decimal}"
    ".wysiwyg ol ol{list-style-type:lower-alpha}"
    ".wysiwyg ol ol ol{list-style-type:lower-roman}"
    ".wysiwyg ol ol ol ol{list-style-type:lower-greek}"
    ".wysiwyg ol ol ol ol ol{list-style-type:decimal}"
    ".wysiwyg ol ol ol ol ol ol{list-style-type:lower-alpha}"
    ".wysiwyg ul{list-style-type:disc}"
    ".wysiwyg ul ul{list-style-type:circle}"
    ".wysiwyg ul ul ul{list-style-type:square}"
    ".wysiwyg ul ul ul ul{list-style-type:circle}"
    ".wysiwyg ul ul ul ul ul{list-style-type:disc}"
    ".wysiwyg ul ul ul ul ul ul{list-style-type:circle}"
    ".wysiwyg blockquote{border-left:4px solid #e6e6e6;padding:0.6em 1.2em}"
    ".wysiwyg blockquote p{margin-bottom:0}"
    ".wysiwyg code,.wysiwyg kbd,.wysiwyg samp,.wysiwyg pre{-moz-osx-font-smoothing:auto;-webkit-font-smoothing:auto;background-color:#f2f2f2;color:#333;font-size:0.9em}"
    ".wysiwyg code,.wysiwyg kbd,.wysiwyg samp{border-radius:3px;line-height:1.77778;padding:0.1em 0.4em 0.2em;vertical-align:baseline}"
    ".wysiwyg pre{overflow:auto;padding:1em 1.2em}"
    ".wysiwyg pre code{background:none;font-size:1em;line-height:1em}"
    ".wysiwyg figure{margin-bottom:2.8em;text-align:center}"
    ".wysiwyg figure:first-child{margin-top:0}"
    ".wysiwyg figure:last-child{margin-bottom:0}"
    ".wysiwyg figcaption{font-size:0.8em;margin-top:.875em}"
    ".wysiwyg table{width:100%}"
    ".wysiwyg table pre{white-space:pre-wrap}"
    ".wysiwyg th,.wysiwyg td{font-size:1em;padding:.7em;border:1px solid #e6e6e6;line-height:1.4}"
    ".wysiwyg thead tr,.wysiwyg tfoot tr{background-color:#f5f5f5}"
    ".wysiwyg thead th,.wysiwyg thead td,.wysiwyg tfoot th,.wysiwyg tfoot td{font-size:.9em;padding:.77778em}"
    ".wysiwyg thead th code,.wysiwyg thead td code,.wysiwyg tfoot th code,.wysiwyg tfoot td code{background-color:#fff}"
    ".wysiwyg tbody tr{background-color:#fff}"
)


def render(compiled_artifact: str, entrypoint: str | None = None) -> str:
    """
    Embed a compiled program in the fixed HTML document template.

    The artifact is inserted verbatim; it is successful compiler output,
    not diagnostic text, so no escaping or sanitization is applied.

    Args:
        compiled_artifact: JavaScript produced by the toolchain
        entrypoint: Script run on load. Defaults to settings.render_entrypoint.

    Returns:
        Complete HTML document
    """
    entrypoint = entrypoint if entrypoint is not None else settings.render_entrypoint
    return (
        "\n"
        "<!DOCTYPE HTML>\n"
        "<html>\n"
        "  <head>\n"
        '    <meta charset="UTF-8">\n'
        f"    <style>{BASELINE_STYLESHEET}</style>\n"
        f'    <script type="text/javascript">{compiled_artifact}</script>\n'
        "  </head>\n"
        '  <body class="wysiwyg"></body>\n'
        f'  <script type="text/javascript">{entrypoint}</script>\n'
        "</html>\n"
    )
