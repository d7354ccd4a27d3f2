"""
File upload GraphQL operations.

Flow: stagedUploadsCreate -> multipart POST to the staged target ->
fileCreate -> poll node(id) until the file is READY.
"""

STAGED_UPLOADS_CREATE_MUTATION = """
mutation StagedUploadsCreate($input: [StagedUploadInput!]!) {
  stagedUploadsCreate(input: $input) {
    stagedTargets {
      resourceUrl
      url
      parameters {
        name
        value
      }
    }
    userErrors {
      field
      message
    }
  }
}
"""

FILE_CREATE_MUTATION = """
mutation FileCreate($files: [FileCreateInput!]!) {
  fileCreate(files: $files) {
    files {
      id
      fileStatus
      ... on GenericFile {
        url
        mimeType
      }
    }
    userErrors {
      field
      message
      code
    }
  }
}
"""

GENERIC_FILE_STATUS_QUERY = """
query GenericFileStatus($id: ID!) {
  node(id: $id) {
    __typename
    ... on GenericFile {
      id
      fileStatus
      url
      mimeType
      fileErrors {
        code
        details
        message
      }
    }
  }
}
"""

__all__ = [
    "STAGED_UPLOADS_CREATE_MUTATION",
    "FILE_CREATE_MUTATION",
    "GENERIC_FILE_STATUS_QUERY",
]
