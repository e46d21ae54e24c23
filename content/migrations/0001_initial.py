import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('users', '0001_initial'),
    ]

    operations = [
        migrations.CreateModel(
            name='ContentModel',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False,
                                           verbose_name='ID')),
                ('url', models.URLField(max_length=2048)),
                ('title', models.CharField(max_length=255)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE,
                                            related_name='content', to='users.usermodel')),
            ],
            options={
                'db_table': 'content',
            },
        ),
        migrations.CreateModel(
            name='VoteModel',
            fields=[
                ('pk', models.CompositePrimaryKey('user_id', 'content_id', blank=True,
                                                  editable=False, primary_key=True,
                                                  serialize=False)),
                ('up_vote', models.BooleanField()),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('content', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE,
                                              related_name='votes', to='content.contentmodel')),
                ('user', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE,
                                           related_name='votes', to='users.usermodel')),
            ],
            options={
                'db_table': 'vote',
            },
        ),
        migrations.AddField(
            model_name='contentmodel',
            name='voters',
            field=models.ManyToManyField(related_name='voted_content', through='content.VoteModel',
                                         to='users.usermodel'),
        ),
    ]
