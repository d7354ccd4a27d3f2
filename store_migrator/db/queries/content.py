"""
Online store content GraphQL queries and mutations.

Blogs, articles, comment moderation and pages. Comments themselves are
created through the REST comments endpoint (see ShopifyContentClient).
"""

BLOGS_QUERY = """
query GetBlogs($first: Int!, $after: String) {
  blogs(first: $first, after: $after) {
    edges {
      cursor
      node {
        id
        handle
        title
        templateSuffix
        commentPolicy
      }
    }
    pageInfo {
      hasNextPage
      endCursor
    }
  }
}
"""

BLOG_CREATE_MUTATION = """
mutation CreateBlog($blog: BlogCreateInput!) {
  blogCreate(blog: $blog) {
    blog {
      id
      title
      handle
      commentPolicy
    }
    userErrors {
      code
      field
      message
    }
  }
}
"""

ARTICLE_SEARCH_QUERY = """
query ArticleSearch($first: Int!, $query: String!) {
  articles(first: $first, query: $query) {
    nodes {
      id
      handle
      title
      blog {
        id
        handle
      }
    }
  }
}
"""

ARTICLE_CREATE_MUTATION = """
mutation CreateArticle($article: ArticleCreateInput!) {
  articleCreate(article: $article) {
    article {
      id
      title
      handle
    }
    userErrors {
      code
      field
      message
    }
  }
}
"""

ARTICLE_UPDATE_MUTATION = """
mutation UpdateArticle($id: ID!, $article: ArticleUpdateInput!) {
  articleUpdate(id: $id, article: $article) {
    article {
      id
      title
      handle
    }
    userErrors {
      code
      field
      message
    }
  }
}
"""

COMMENT_APPROVE_MUTATION = """
mutation ApproveComment($id: ID!) {
  commentApprove(id: $id) {
    comment {
      id
      status
    }
    userErrors {
      field
      message
    }
  }
}
"""

COMMENT_SPAM_MUTATION = """
mutation MarkCommentAsSpam($id: ID!) {
  commentSpam(id: $id) {
    comment {
      id
      status
    }
    userErrors {
      field
      message
    }
  }
}
"""

PAGE_SEARCH_QUERY = """
query PageSearch($query: String!) {
  pages(first: 5, query: $query) {
    nodes {
      id
      title
      handle
    }
  }
}
"""

PAGE_CREATE_MUTATION = """
mutation CreatePage($page: PageCreateInput!) {
  pageCreate(page: $page) {
    page {
      id
      title
      handle
    }
    userErrors {
      code
      field
      message
    }
  }
}
"""

PAGE_UPDATE_MUTATION = """
mutation UpdatePage($id: ID!, $page: PageUpdateInput!) {
  pageUpdate(id: $id, page: $page) {
    page {
      id
      title
      handle
    }
    userErrors {
      code
      field
      message
    }
  }
}
"""

__all__ = [
    "BLOGS_QUERY",
    "BLOG_CREATE_MUTATION",
    "ARTICLE_SEARCH_QUERY",
    "ARTICLE_CREATE_MUTATION",
    "ARTICLE_UPDATE_MUTATION",
    "COMMENT_APPROVE_MUTATION",
    "COMMENT_SPAM_MUTATION",
    "PAGE_SEARCH_QUERY",
    "PAGE_CREATE_MUTATION",
    "PAGE_UPDATE_MUTATION",
]
