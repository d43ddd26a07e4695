from wd_enrichment.exceptions import APINetworkError, APIServerError


def is_retryable_api_exception(exc: BaseException) -> bool:
    """
    Determine if it is beneficial to retry a request that raised the given exception.

    Network errors, timeouts and 5xx responses are transient and worth another
    attempt. Client errors (4xx, including rejected credentials) are not.

    Example usage with tenacity:

    @retry(
        retry=retry_if_exception(is_retryable_api_exception),
        ... # other tenacity settings
    )
    def fetch():
        ...

    :param exc: The exception to evaluate.

    :return: True if the exception is retryable, False otherwise.
    """
    return isinstance(exc, (APINetworkError, APIServerError))
