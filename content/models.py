from django.db import models


class ContentModel(models.Model):
    url = models.URLField(max_length=2048)
    title = models.CharField(max_length=255)
    owner = models.ForeignKey('users.UserModel', on_delete=models.CASCADE, related_name='content')
    voters = models.ManyToManyField('users.UserModel', through='content.VoteModel',
                                    related_name='voted_content')
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'content'

    def __str__(self):
        return self.title


class VoteModel(models.Model):
    # The primary key is the (user, content) pair, so the database itself refuses a second vote.
    # Always insert with objects.create() (or save(force_insert=True)): a plain save() on an
    # existing pair would UPDATE the direction instead of failing.
    pk = models.CompositePrimaryKey('user_id', 'content_id')
    user = models.ForeignKey('users.UserModel', on_delete=models.CASCADE, related_name='votes')
    content = models.ForeignKey('content.ContentModel', on_delete=models.CASCADE,
                                related_name='votes')
    up_vote = models.BooleanField()
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'vote'

    def __str__(self):
        return '{} {} {}'.format(self.user_id, 'up' if self.up_vote else 'down', self.content_id)
