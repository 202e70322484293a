"""
Built-in LaTeX presets.

- DEFAULT_LATEX_PREAMBLE: default header_includes of a new profile
- CALLOUT_PREAMBLE: tcolorbox environment used by callout blocks
- CALLOUT_LUA_FILTER: pandoc filter turning "> [!type] Title" quotes into that environment
"""

DEFAULT_LATEX_PREAMBLE = r"""
\providecommand{\passthrough}[1]{#1}

\usepackage{microtype}
\usepackage{luatexja}
\usepackage{luatexja-fontspec}
\usepackage[noto-otf]{luatexja-preset}
\setmainfont{Noto Sans CJK JP}
\setsansfont{Noto Sans CJK JP}
\setmonofont{Ricty Diminished}
\usepackage{luatexja-ruby}

\usepackage{parskip}
\usepackage{listings}
\usepackage{xcolor}
\usepackage{setspace}
\usepackage{booktabs}
\usepackage{amsmath,amssymb}
\usepackage{mathtools}
\usepackage{hyperref}
\usepackage{cleveref}
\usepackage{autonum}
\usepackage{graphicx}
\usepackage{caption}
\captionsetup{labelsep=colon}
\usepackage{fontspec}
\setcounter{tocdepth}{4}
\linespread{1.1}
\usepackage{makecell}
\usepackage{multirow}
\usepackage{array}
\usepackage{tikz}
\definecolor{textcolor}{RGB}{34,34,34}
\usepackage{float}
\floatplacement{figure}{H}
\floatplacement{table}{H}

\renewcommand{\labelitemii}{\textbullet}
\renewcommand{\labelitemiii}{\textbullet}
\renewcommand{\labelitemiv}{\textbullet}

\lstset{
  frame=single,
  framesep=3pt,
  basicstyle=\ttfamily\scriptsize,
  keywordstyle=\color{blue}\bfseries,
  commentstyle=\color{green!50!black},
  stringstyle=\color{red},
  breaklines=true,
  numbers=none,
  numberstyle=\tiny\color{gray},
  stepnumber=1,
  tabsize=4
}
\lstdefinelanguage{zsh}{
  morekeywords={ls, cd, pwd, echo, export, alias, unalias, function},
  sensitive=true,
  morecomment=[l]{\#},
  morestring=[b]",
  morestring=[b]'
}

\usepackage{tcolorbox}
\tcbuselibrary{breakable, skins}

\newtcolorbox{blockquote}{
  breakable,
  enhanced,
  colback=black!2,
  colframe=black!40,
  boxrule=0pt,
  leftrule=1pt,
  sharp corners,
  arc=0pt, outer arc=0pt,
  top=6pt, bottom=6pt,
  left=0.8em, right=0em,
  before skip=6pt, after skip=6pt,
  frame hidden,
  borderline west={1pt}{0pt}{black!40}
}

\makeatletter
\renewenvironment{quote}
  {\begin{blockquote}\list{}{\leftmargin=0pt\rightmargin=0pt}\item\relax\small}
  {\endlist\end{blockquote}}
\renewenvironment{quotation}
  {\begin{blockquote}\list{}{\leftmargin=0pt\rightmargin=0pt}\item\relax\small}
  {\endlist\end{blockquote}}
\makeatother
""".strip()

CALLOUT_PREAMBLE = r"""
\makeatletter
\@ifpackageloaded{tcolorbox}{}{\usepackage{tcolorbox}}
\makeatother
\tcbuselibrary{skins,breakable}
\usepackage{fontawesome5}
\definecolor{callout-bg}{HTML}{EEF3FF}
\definecolor{callout-accent}{HTML}{2563EB}
\definecolor{callout-text}{HTML}{0F172A}
\definecolor{callout-quote}{HTML}{64748B}
\definecolor{callout-memo}{HTML}{2563EB}
\definecolor{callout-note}{HTML}{2563EB}
\definecolor{callout-info}{HTML}{0EA5E9}
\definecolor{callout-todo}{HTML}{2563EB}
\definecolor{callout-tip}{HTML}{16A34A}
\definecolor{callout-success}{HTML}{16A34A}
\definecolor{callout-question}{HTML}{8B5CF6}
\definecolor{callout-warning}{HTML}{F59E0B}
\definecolor{callout-failure}{HTML}{EF4444}
\definecolor{callout-danger}{HTML}{EF4444}
\definecolor{callout-bug}{HTML}{EF4444}
\definecolor{callout-example}{HTML}{2563EB}

\newtcolorbox{obsidiancallout}[3]{%
  breakable,
  enhanced,
  parbox=false,
  colback=callout-bg,
  colframe=callout-bg,
  colbacktitle=callout-bg,
  coltitle=#1,
  coltext=callout-text,
  boxrule=0pt,
  frame hidden,
  borderline west={3pt}{0pt}{#1},
  arc=3pt,
  outer arc=3pt,
  sharp corners=west,
  left=10pt,
  right=10pt,
  top=0pt,
  bottom=10pt,
  toptitle=8pt,
  bottomtitle=2pt,
  titlerule=0mm,
  fonttitle=\bfseries\sffamily,
  title={#2\hspace{0.5em}#3},
}
""".strip()

CALLOUT_LUA_FILTER = r"""
-- callout.lua
-- Converts "> [!type] Title" block quotes into the obsidiancallout tcolorbox.

local known = {
  memo = true, note = true, info = true, todo = true, tip = true,
  success = true, question = true, warning = true, failure = true,
  danger = true, bug = true, example = true, quote = true,
}

local function extract_callout(para)
  if not para or para.t ~= "Para" or #para.content == 0 then
    return nil
  end

  local first = para.content[1]
  if first.t ~= "Str" then
    return nil
  end

  -- [!type] Title, fold markers [+]/[-] are ignored
  local type_mark = first.text:match("^%[!([%w%-]+)%][%+%-]?")
  if not type_mark then
    return nil
  end

  local title_inlines = { table.unpack(para.content, 2) }
  if #title_inlines == 0 then
    table.insert(title_inlines, pandoc.Str((type_mark:gsub("^%l", string.upper))))
  end

  return type_mark:lower(), title_inlines
end

function BlockQuote(el)
  local type_lower, title_inlines = extract_callout(el.content[1])
  if not type_lower then
    return nil
  end

  local color_name = "callout-" .. type_lower
  if not known[type_lower] then
    color_name = "callout-note"
  end

  local title_doc = pandoc.Pandoc({ pandoc.Para(title_inlines) })
  local title_tex = pandoc.write(title_doc, "latex"):gsub("^%s*(.-)%s*$", "%1")

  local result = pandoc.List()
  result:insert(pandoc.RawBlock("latex", "\\begin{obsidiancallout}{" .. color_name .. "}{}{" .. title_tex .. "}"))
  for _, block in ipairs({ table.unpack(el.content, 2) }) do
    result:insert(block)
  end
  result:insert(pandoc.RawBlock("latex", "\\end{obsidiancallout}"))
  return result
end
""".lstrip()
