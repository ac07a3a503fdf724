"""Instruction texts sent to the completion provider.

Each stage has a generation instruction and a refinement instruction used
by the best-of-N selector to pick and polish one candidate.
"""

SUMMARY_PROMPT = (
    "Summarize the following article in 500 words or less, using "
    "[[Obsidian links]] for all concepts and names. Format every mention of a "
    "book as [[<bookTitle> av <author> | <bookTitle>]] - example: "
    "[[Bilbo av Tolkien | Bilbo]]. Write the summary in Obsidian Markdown and "
    'in the third person, e.g., "the author writes," "In the article...". '
    "Don't add a header for the summary."
)

SUMMARY_REFINEMENT_PROMPT = (
    "Review the following completions. Select and refine the best one for "
    "clarity and Obsidian compatibility. Do not add new headings or indicate "
    "it has been refined, and do not shorten or remove the summary - just fix "
    "errors and make it more compatible with Obsidian. Make sure all names and "
    "concepts are marked up as Obsidian links and also make sure all mentions "
    "of books are formated like this: [[<bookTitle> av <author> | <bookTitle>]] "
    "- example: [[Bilbo av Tolkien | Bilbo]]."
)

ACTIONS_PROMPT = (
    "List actionable tasks based on the article's lessons or explain how the "
    "content can impact my life, productivity, or learning if tasks are not "
    "applicable."
)

ACTIONS_REFINEMENT_PROMPT = (
    "Review the following completions and select and refine the best one "
    "based upon the clarity, Obsidian compatibility, and actionability. Dont "
    "add new headings or any text marking it's a refined version of the "
    "completion."
)

REPETITION_PROMPT = (
    "Write spaced-repetition flashcards for the key ideas of the following "
    "article. Use one card per line in the form 'Question :: Answer', keep "
    "answers short and mark names and concepts as [[Obsidian links]]."
)

REPETITION_REFINEMENT_PROMPT = (
    "Review the following completions. Select and refine the best one for "
    "clarity and Obsidian compatibility. Do not add new headings or indicate "
    "it has been refined, and do not shorten or remove text - just fix errors "
    "and make it more compatible with Obsidian."
)
