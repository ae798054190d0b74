"""
Search indexing and query engine package.

- analyzers: the tokenizer contract shared by build and query time
- schema: indexed fields and their weights
- models: postings, inverted index, search index
- stats: length normalization and IDF helpers
- indexer: index construction
- artifact: index artifact serialization
- engine: query scoring and ranking
- snippet: result snippets and highlighting
"""
