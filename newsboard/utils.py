# newsboard -- newsboard/utils.py
#
# Copyright © 2017 Sean Bolton.
#
# Permission is hereby granted, free of charge, to any person obtaining
# a copy of this software and associated documentation files (the
# "Software"), to deal in the Software without restriction, including
# without limitation the rights to use, copy, modify, merge, publish,
# distribute, sublicense, and/or sell copies of the Software, and to
# permit persons to whom the Software is furnished to do so, subject to
# the following conditions:
#
# The above copyright notice and this permission notice shall be
# included in all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND,
# EXPRESS OR IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF
# MERCHANTABILITY, FITNESS FOR A PARTICULAR PURPOSE AND
# NONINFRINGEMENT. IN NO EVENT SHALL THE AUTHORS OR COPYRIGHT HOLDERS BE
# LIABLE FOR ANY CLAIM, DAMAGES OR OTHER LIABILITY, WHETHER IN AN ACTION
# OF CONTRACT, TORT OR OTHERWISE, ARISING FROM, OUT OF OR IN CONNECTION
# WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE SOFTWARE.

import traceback

from graphql.error import GraphQLError


# ========== GraphQL error reporting ==========

# graphql-core (3) catches exceptions raised by resolvers and reports each one as a GraphQLError
# in the execution result, keeping the original exception (and its traceback) as 'original_error'.
# That is all the information needed to see why a query failed, but it is not printed anywhere, so
# format_graphql_errors() turns it into a string suitable for a test failure message.

def format_graphql_errors(errors):
    """Return a string with the usual exception traceback, plus some extra fields that GraphQL
    provides.
    """
    if not errors:
        return None
    text = []
    for i, e in enumerate(errors):
        text.append('GraphQL schema execution error [{}]:\n'.format(i))
        if isinstance(e, GraphQLError):
            for attr in ('message', 'locations', 'path'):
                if getattr(e, attr, None) is not None:
                    text.append('{}: {}\n'.format(attr, repr(getattr(e, attr))))
            if e.source is not None:
                text.append('source: {}:{}\n'.format(e.source.name, e.source.body))
            e = e.original_error or e
        if isinstance(e, Exception):
            text.append(''.join(traceback.format_exception(type(e), e, e.__traceback__)))
        else:
            text.append(repr(e) + '\n')
    return ''.join(text)
